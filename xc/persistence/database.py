"""SQLite database layer for explanation history.

Manages the SQLite connection and schema creation. Uses aiosqlite for
async access with WAL mode for concurrent read performance.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS explanations (
    id           TEXT PRIMARY KEY,
    code         TEXT NOT NULL,
    language     TEXT NOT NULL DEFAULT '',
    title        TEXT NOT NULL DEFAULT '',
    explanation  TEXT NOT NULL DEFAULT '',
    timestamp    REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_explanations_timestamp ON explanations(timestamp);
CREATE INDEX IF NOT EXISTS idx_explanations_language ON explanations(language);
"""


async def init_db(db_path: str) -> aiosqlite.Connection:
    """Open the history database, creating it and its tables if needed.

    Args:
        db_path: Path to the SQLite file. Supports ~ expansion and
            ``:memory:``.

    Returns:
        An open aiosqlite connection.
    """
    if db_path == ":memory:":
        target = db_path
    else:
        resolved = Path(db_path).expanduser()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        target = str(resolved)

    db = await aiosqlite.connect(target)
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    await db.executescript(_SCHEMA)
    await db.commit()

    logger.info("History database initialized at %s", target)
    return db


async def close_db(db: aiosqlite.Connection) -> None:
    """Close the database connection."""
    await db.close()
