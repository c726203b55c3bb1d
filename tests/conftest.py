from datetime import UTC, datetime, timedelta

import pytest

from context_engine.config import EngineLimits, Settings
from context_engine.conversation.store import ConversationStore
from context_engine.database.db import init_db
from context_engine.database.repository import ConversationRepository
from context_engine.models import InboundMessage

TEST_SETTINGS = Settings(
    database_path=":memory:",
    ollama_base_url="http://localhost:11434",
    ollama_model="test-model",
    random_seed=42,
    log_json=True,
)

START = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def settings() -> Settings:
    return TEST_SETTINGS


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# --- Async fixtures for unit tests ---


@pytest.fixture
async def db_connection():
    conn = await init_db(":memory:")
    yield conn
    await conn.close()


@pytest.fixture
async def repository(db_connection):
    return ConversationRepository(db_connection)


@pytest.fixture
async def store(repository, clock) -> ConversationStore:
    return ConversationStore(
        repository,
        limits=EngineLimits.from_settings(TEST_SETTINGS),
        clock=clock,
    )


def make_message(
    body: str = "Olá!",
    from_number: str = "5511999990000",
    message_id: str = "msg-1",
    is_group: bool = False,
    group_id: str | None = None,
    timestamp: datetime = START,
) -> InboundMessage:
    return InboundMessage(
        id=message_id,
        from_number=from_number,
        to="5511888880000",
        body=body,
        timestamp=timestamp,
        is_group=is_group,
        group_id=group_id,
    )


def make_bus_record(
    body: str | None = "Olá!",
    from_number: str | None = "5511999990000",
    message_id: str = "msg-1",
    **extra,
) -> dict:
    record: dict = {
        "id": message_id,
        "to": "5511888880000",
        "timestamp": "1700000000",
        "type": "text",
        "isGroup": False,
    }
    if from_number is not None:
        record["from"] = from_number
    if body is not None:
        record["body"] = body
    record.update(extra)
    return record
