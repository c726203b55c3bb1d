from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from context_engine.context.vocabulary import DEFAULT_VOCABULARY, Vocabulary
from context_engine.models import utcnow

if TYPE_CHECKING:
    from context_engine.models import ConversationContext

logger = logging.getLogger(__name__)


class TopicSegmenter:
    """Decides where one topic ends and the next begins."""

    def __init__(
        self,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        timeout_minutes: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._vocab = vocabulary
        self._timeout = timedelta(minutes=timeout_minutes)
        self._clock = clock

    def is_new_topic(
        self,
        context: ConversationContext,
        message: str,
        intent: str,
        now: datetime | None = None,
    ) -> bool:
        now = now or self._clock()

        if now - context.topic_start_time > self._timeout:
            return True

        # Transitions are looked up per source intent; the table is not symmetric.
        incompatible = self._vocab.incompatible_transitions.get(context.last_intent)
        if incompatible and intent in incompatible:
            return True

        lower = message.lower()
        return any(phrase in lower for phrase in self._vocab.topic_change_phrases)

    def extract_topic_label(self, message: str, intent: str) -> str:
        return self._vocab.topic_labels.get(intent, self._vocab.default_topic_label)

    def finalize_topic(self, context: ConversationContext) -> None:
        logger.info(
            "Topic finalized: %s (%d messages)",
            context.current_topic,
            len(context.topic_messages),
        )

    def advance(
        self,
        context: ConversationContext,
        message: str,
        intent: str,
        now: datetime | None = None,
    ) -> bool:
        """Fold a message into the active topic, opening a new one when needed.

        Must run before context.last_intent is updated for this message.
        Returns True when a new topic was started.
        """
        now = now or self._clock()

        if context.current_topic and not self.is_new_topic(context, message, intent, now):
            context.topic_messages.append(message)
            return False

        if context.current_topic:
            self.finalize_topic(context)

        context.current_topic = self.extract_topic_label(message, intent)
        context.topic_start_time = now
        context.topic_messages = [message]
        logger.debug("New topic started: %s", context.current_topic)
        return True
