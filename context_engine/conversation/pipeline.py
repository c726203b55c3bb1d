from __future__ import annotations

import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from context_engine.bus.parser import parse_message
from context_engine.config import EngineLimits, Settings
from context_engine.context.summarizer import summarize
from context_engine.conversation.store import ConversationStore
from context_engine.database.db import init_db
from context_engine.database.repository import ConversationRepository
from context_engine.llm.client import OllamaClient
from context_engine.llm.responder import Responder
from context_engine.logging_config import configure_logging
from context_engine.models import AssistantReply, Conversation

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    conversation: Conversation
    reply: AssistantReply
    briefing: str


class MessagePipeline:
    """Entry point for the message-dispatch loop: one bus record in, one reply out.

    The completion call runs outside the per-number lock; only the final
    load/apply/save is serialized.
    """

    def __init__(
        self,
        store: ConversationStore,
        responder: Responder,
        min_importance: int = 7,
        window_items: int = 5,
        flow_items: int = 3,
    ):
        self._store = store
        self._responder = responder
        self._min_importance = min_importance
        self._window_items = window_items
        self._flow_items = flow_items

    @property
    def store(self) -> ConversationStore:
        return self._store

    async def handle(self, record: dict) -> PipelineResult:
        message = parse_message(record)
        key = message.conversation_key
        logger.info("Processing message from %s: %s", key, message.body[:50])

        conversation = await self._store.get_or_create(
            key, is_group=message.is_group, group_id=message.group_id
        )
        briefing = summarize(
            conversation,
            min_importance=self._min_importance,
            window_items=self._window_items,
            flow_items=self._flow_items,
        )
        reply = await self._responder.respond(message.body, briefing, message.is_group)

        updated = await self._store.process_inbound(message, reply)
        return PipelineResult(conversation=updated, reply=reply, briefing=briefing)


@asynccontextmanager
async def open_pipeline(settings: Settings | None = None) -> AsyncIterator[MessagePipeline]:
    """Wire the engine from settings and tear it down on exit."""
    settings = settings or Settings()
    configure_logging(
        level=settings.log_level, json_format=settings.log_json, log_file=settings.log_file
    )

    http_client = httpx.AsyncClient(timeout=httpx.Timeout(600.0, connect=10.0))
    conn = await init_db(settings.database_path)
    try:
        ollama_client = OllamaClient(
            http_client=http_client,
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
        )
        store = ConversationStore(
            ConversationRepository(conn),
            limits=EngineLimits.from_settings(settings),
        )
        responder = Responder(
            ollama_client.generate_completion,
            rng=random.Random(settings.random_seed),
            audio_probability=settings.audio_reply_probability,
            assistant_name=settings.assistant_name,
        )
        yield MessagePipeline(
            store,
            responder,
            min_importance=settings.summary_min_importance,
            window_items=settings.summary_window_items,
            flow_items=settings.summary_flow_items,
        )
    finally:
        await conn.close()
        await http_client.aclose()
        logger.info("Conversation engine stopped")
