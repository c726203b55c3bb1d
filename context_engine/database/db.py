from __future__ import annotations

import logging
import os

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS conversations (
    id            TEXT PRIMARY KEY,
    phone_number  TEXT UNIQUE NOT NULL,
    is_group      INTEGER NOT NULL DEFAULT 0,
    last_activity TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL,
    document      TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_conversations_activity ON conversations(last_activity);
CREATE INDEX IF NOT EXISTS idx_conversations_group ON conversations(is_group);
"""


async def init_db(db_path: str) -> aiosqlite.Connection:
    """Open the conversation document store and apply the schema."""
    if db_path != ":memory:":
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA synchronous=NORMAL")   # Faster, safe with WAL
    await conn.execute("PRAGMA temp_store=MEMORY")
    await conn.executescript(SCHEMA)
    await conn.commit()
    logger.info("Conversation store ready at %s", db_path)
    return conn
