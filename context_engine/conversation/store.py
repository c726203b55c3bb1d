from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta

from context_engine.config import EngineLimits
from context_engine.context.classifier import Classification, Classifier
from context_engine.context.importance import score_importance
from context_engine.context.topics import TopicSegmenter
from context_engine.context.window import ContextWindowManager
from context_engine.conversation.locks import KeyedLock
from context_engine.database.repository import ConversationRepository
from context_engine.errors import DuplicateKey, MalformedMessage, NotFound
from context_engine.models import (
    AssistantReply,
    Conversation,
    ConversationContext,
    FlowEntry,
    InboundMessage,
    utcnow,
)

logger = logging.getLogger(__name__)


def _generate_id(now: datetime) -> str:
    return f"conv_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


def _keep_last(items: list, limit: int) -> list:
    return items[-limit:] if len(items) > limit else items


class ConversationStore:
    """Owns Conversation aggregates: creates them, folds inbound messages in, persists them.

    Every mutation for one phone number runs inside that number's lock, from
    load to save. Different numbers proceed independently.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        limits: EngineLimits | None = None,
        classifier: Classifier | None = None,
        segmenter: TopicSegmenter | None = None,
        window: ContextWindowManager | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._repo = repository
        self._limits = limits or EngineLimits()
        self._classifier = classifier or Classifier()
        self._segmenter = segmenter or TopicSegmenter(
            self._classifier.vocabulary,
            timeout_minutes=self._limits.topic_timeout_minutes,
            clock=clock,
        )
        self._window = window or ContextWindowManager(
            max_size=self._limits.context_window_max, clock=clock
        )
        self._clock = clock
        self._locks = KeyedLock()

    @property
    def locks(self) -> KeyedLock:
        return self._locks

    # --- Lookup / creation ---

    async def get(self, phone_number: str) -> Conversation | None:
        return await self._repo.load(phone_number)

    async def require(self, phone_number: str) -> Conversation:
        conversation = await self._repo.load(phone_number)
        if conversation is None:
            raise NotFound(phone_number)
        return conversation

    async def create(
        self,
        phone_number: str,
        is_group: bool = False,
        group_id: str | None = None,
        group_name: str | None = None,
    ) -> Conversation:
        now = self._clock()
        conversation = Conversation(
            id=_generate_id(now),
            phone_number=phone_number,
            is_group=is_group,
            group_id=group_id,
            group_name=group_name,
            last_activity=now,
            context=ConversationContext(topic_start_time=now),
            created_at=now,
            updated_at=now,
        )
        await self._repo.insert(conversation)
        logger.info("Conversation created for %s (group=%s)", phone_number, is_group)
        return conversation

    async def get_or_create(
        self,
        phone_number: str,
        is_group: bool = False,
        group_id: str | None = None,
        group_name: str | None = None,
    ) -> Conversation:
        conversation = await self._repo.load(phone_number)
        if conversation is not None:
            return conversation
        try:
            return await self.create(phone_number, is_group, group_id, group_name)
        except DuplicateKey:
            # Lost a creation race; the winner's document is authoritative.
            return await self.require(phone_number)

    # --- Mutation ---

    async def apply_inbound_message(
        self,
        conversation: Conversation,
        message: InboundMessage,
        reply: AssistantReply | None = None,
    ) -> Conversation:
        """Fold one inbound message (and its paired reply) into the conversation and persist it.

        The latest stored document is re-read under the lock, so a stale
        ``conversation`` argument cannot roll back a concurrent update.
        """
        async with self._locks.hold(conversation.phone_number):
            current = await self._repo.load(conversation.phone_number) or conversation
            return await self._apply_and_save(current, message, reply)

    async def process_inbound(
        self,
        message: InboundMessage,
        reply: AssistantReply | None = None,
    ) -> Conversation:
        """Load or create the sender's conversation and apply the message, as one unit."""
        if not message.from_number.strip():
            raise MalformedMessage("from", "empty")

        key = message.conversation_key
        async with self._locks.hold(key):
            conversation = await self._repo.load(key)
            if conversation is None:
                conversation = await self._create_under_lock(message)
            return await self._apply_and_save(conversation, message, reply)

    async def _create_under_lock(self, message: InboundMessage) -> Conversation:
        try:
            return await self.create(
                message.conversation_key,
                is_group=message.is_group,
                group_id=message.group_id,
            )
        except DuplicateKey:
            return await self.require(message.conversation_key)

    async def _apply_and_save(
        self,
        conversation: Conversation,
        message: InboundMessage,
        reply: AssistantReply | None,
    ) -> Conversation:
        # Work on a copy so a failed save leaves the caller's view untouched.
        updated = conversation.model_copy(deep=True)
        now = self._clock()

        updated.messages = _keep_last([*updated.messages, message], self._limits.max_messages)
        classification = self._fold_context(updated.context, message, reply, now)

        updated.last_activity = now
        updated.updated_at = now

        await self._repo.save(updated)
        logger.debug(
            "Applied message to %s: intent=%s urgency=%s topic=%s",
            updated.phone_number,
            classification.intent,
            classification.urgency,
            updated.context.current_topic,
        )
        return updated

    def _fold_context(
        self,
        context: ConversationContext,
        message: InboundMessage,
        reply: AssistantReply | None,
        now: datetime,
    ) -> Classification:
        body = message.body
        classification = self._classifier.classify(body, prior_intent=context.last_intent or None)
        if classification.intent_changed:
            logger.debug("Intent changed: %s -> %s", context.last_intent, classification.intent)

        context.emotional_state = classification.emotional_state

        # Segmentation reads the previous message's intent, so it runs before last_intent moves.
        self._segmenter.advance(context, body, classification.intent, now)

        importance = score_importance(
            body, classification.intent, context, self._classifier.vocabulary
        )
        self._window.insert(context, body, importance, now)
        logger.debug("Message importance: %d", importance)

        confidence = self._limits.default_flow_confidence
        if reply is not None and reply.confidence is not None:
            confidence = reply.confidence
        context.conversation_flow = _keep_last(
            [
                *context.conversation_flow,
                FlowEntry(
                    timestamp=now,
                    intent=classification.intent,
                    confidence=confidence,
                    response=reply.text if reply else "",
                    entities=classification.entities,
                ),
            ],
            self._limits.flow_max,
        )

        context.last_intent = classification.intent
        context.urgency = classification.urgency

        history = [*context.conversation_history, f"{message.from_number}: {body}"]
        if reply is not None and reply.text:
            history.append(f"{self._limits.assistant_name}: {reply.text}")
        context.conversation_history = _keep_last(history, self._limits.history_max)

        self._merge_client_info(context, classification)
        return classification

    @staticmethod
    def _merge_client_info(context: ConversationContext, classification: Classification) -> None:
        # Name and business type are set once and never overwritten.
        if classification.client_name_hint and not context.client_name:
            context.client_name = classification.client_name_hint
        if classification.business_type_hint and not context.business_type:
            context.business_type = classification.business_type_hint

        colors = context.preferences.preferred_colors
        for color in classification.colors:
            if color not in colors:
                colors.append(color)

    # --- Reporting queries ---

    async def find_by_activity_window(self, start: datetime, end: datetime) -> list[Conversation]:
        return await self._repo.find_by_activity_window(start, end)

    async def find_by_date(self, day: date) -> list[Conversation]:
        """Conversations active at any point during ``day`` (UTC)."""
        start = datetime.combine(day, time.min, tzinfo=UTC)
        end = start + timedelta(days=1) - timedelta(microseconds=1)
        return await self._repo.find_by_activity_window(start, end)
