from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

import aiosqlite
from pydantic import ValidationError

from context_engine.errors import DuplicateKey, NotFound, StorageUnavailable
from context_engine.models import Conversation

logger = logging.getLogger(__name__)

# aiosqlite raises ValueError once the connection has been closed
_STORE_ERRORS = (aiosqlite.Error, ValueError)


def to_db_timestamp(value: datetime) -> str:
    """Fixed-width UTC text so range queries can compare lexicographically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class ConversationRepository:
    """Keyed document store for Conversation aggregates, one row per phone number.

    All keys share one connection and therefore one SQLite transaction, so
    writes run one at a time: execute, commit and any rollback happen under
    ``_write_lock``. A failed write can only discard its own statement.
    """

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn
        self._write_lock = asyncio.Lock()

    async def load(self, phone_number: str) -> Conversation | None:
        try:
            cursor = await self._conn.execute(
                "SELECT document FROM conversations WHERE phone_number = ?",
                (phone_number,),
            )
            row = await cursor.fetchone()
        except _STORE_ERRORS as exc:
            logger.warning("Failed to load conversation %s", phone_number, exc_info=True)
            raise StorageUnavailable("load", str(exc)) from exc
        if row is None:
            return None
        return self._parse(row[0], "load")

    async def insert(self, conversation: Conversation) -> None:
        async with self._write_lock:
            try:
                await self._conn.execute(
                    "INSERT INTO conversations "
                    "(id, phone_number, is_group, last_activity, created_at, updated_at, document) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        conversation.id,
                        conversation.phone_number,
                        int(conversation.is_group),
                        to_db_timestamp(conversation.last_activity),
                        to_db_timestamp(conversation.created_at),
                        to_db_timestamp(conversation.updated_at),
                        conversation.model_dump_json(),
                    ),
                )
                await self._conn.commit()
            except aiosqlite.IntegrityError as exc:
                await self._discard()
                raise DuplicateKey(conversation.phone_number) from exc
            except _STORE_ERRORS as exc:
                await self._discard()
                logger.warning(
                    "Failed to insert conversation %s", conversation.phone_number, exc_info=True
                )
                raise StorageUnavailable("insert", str(exc)) from exc

    async def save(self, conversation: Conversation) -> None:
        """Replace the stored document. Either the whole document is written or nothing is."""
        async with self._write_lock:
            try:
                cursor = await self._conn.execute(
                    "UPDATE conversations SET last_activity = ?, updated_at = ?, document = ? "
                    "WHERE phone_number = ?",
                    (
                        to_db_timestamp(conversation.last_activity),
                        to_db_timestamp(conversation.updated_at),
                        conversation.model_dump_json(),
                        conversation.phone_number,
                    ),
                )
                updated = cursor.rowcount
                await self._conn.commit()
            except _STORE_ERRORS as exc:
                await self._discard()
                logger.warning(
                    "Failed to save conversation %s", conversation.phone_number, exc_info=True
                )
                raise StorageUnavailable("save", str(exc)) from exc
        if updated == 0:
            raise NotFound(conversation.phone_number)

    async def find_by_activity_window(self, start: datetime, end: datetime) -> list[Conversation]:
        """Conversations whose last activity falls within [start, end], most recent first."""
        try:
            cursor = await self._conn.execute(
                "SELECT document FROM conversations "
                "WHERE last_activity >= ? AND last_activity <= ? "
                "ORDER BY last_activity DESC",
                (to_db_timestamp(start), to_db_timestamp(end)),
            )
            rows = await cursor.fetchall()
        except _STORE_ERRORS as exc:
            logger.warning("Failed to query conversations by activity", exc_info=True)
            raise StorageUnavailable("find_by_activity_window", str(exc)) from exc
        return [self._parse(r[0], "find_by_activity_window") for r in rows]

    async def count(self) -> int:
        try:
            cursor = await self._conn.execute("SELECT COUNT(*) FROM conversations")
            row = await cursor.fetchone()
        except _STORE_ERRORS as exc:
            raise StorageUnavailable("count", str(exc)) from exc
        return row[0]

    @staticmethod
    def _parse(document: str, operation: str) -> Conversation:
        try:
            return Conversation.model_validate_json(document)
        except ValidationError as exc:
            raise StorageUnavailable(operation, f"corrupt conversation document: {exc}") from exc

    async def _discard(self) -> None:
        try:
            await self._conn.rollback()
        except _STORE_ERRORS:
            logger.debug("Rollback after failed write also failed", exc_info=True)
