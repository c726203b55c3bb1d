from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from context_engine.models import ContextWindowEntry, utcnow

if TYPE_CHECKING:
    from context_engine.models import ConversationContext


def _rank(entry: ContextWindowEntry) -> tuple[int, datetime]:
    return entry.importance, entry.timestamp


class ContextWindowManager:
    """Keeps the highest-importance message snippets, not the most recent ones.

    Entries are ordered by importance descending; equal importance puts the
    more recent entry first. Eviction drops from the tail of that order.
    """

    def __init__(self, max_size: int = 20, clock: Callable[[], datetime] = utcnow):
        self._max_size = max_size
        self._clock = clock

    @property
    def max_size(self) -> int:
        return self._max_size

    def insert(
        self,
        context: ConversationContext,
        message: str,
        importance: int,
        now: datetime | None = None,
    ) -> ContextWindowEntry:
        entry = ContextWindowEntry(
            message=message,
            timestamp=now or self._clock(),
            importance=importance,
        )
        window = [*context.context_window, entry]
        # sorted() is stable even with reverse=True; feeding it newest-first keeps
        # the later insertion ahead when (importance, timestamp) are identical.
        window = sorted(reversed(window), key=_rank, reverse=True)
        context.context_window = window[: self._max_size]
        return entry
