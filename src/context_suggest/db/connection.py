"""Database connection management."""

import logging
from pathlib import Path

import aiosqlite

from context_suggest.config import get_db_path
from context_suggest.db.schema import apply_schema

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path | str | None = None) -> aiosqlite.Connection:
    """Create and initialize a database connection.

    For in-memory databases, pass ":memory:".
    """
    db_path = str(db_path or get_db_path())

    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row

    # Enable WAL mode for better concurrent read performance
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")

    await apply_schema(conn)
    logger.debug("Database ready at %s", db_path)
    return conn
