"""FTS5 trigram search backing the fuzzy candidate expander."""

import logging
from typing import Literal

import aiosqlite

logger = logging.getLogger(__name__)

# Trigram tokenizer cannot match anything shorter than three characters
MIN_TOKEN_LENGTH = 3

_TABLES: dict[str, tuple[str, str]] = {
    "files": ("files_fts", "project_files"),
    "prompts": ("prompts_fts", "prompts"),
}


def _escape_fts_query(query: str) -> str:
    """Convert a free-text query to a safe FTS5 query.

    Wraps each token in quotes to avoid FTS5 syntax errors from special chars,
    and ORs them so any matching token contributes.
    """
    tokens = [t.replace('"', '""') for t in query.split() if len(t) >= MIN_TOKEN_LENGTH]
    if not tokens:
        return ""
    return " OR ".join(f'"{token}"' for token in tokens)


class SQLiteFuzzySearch:
    """BM25-ranked substring search over one project's files or prompts.

    Scores are ``-bm25`` so that higher means a better match. Errors propagate;
    the fuzzy expander records the failed query and moves on.
    """

    def __init__(self, db: aiosqlite.Connection, kind: Literal["files", "prompts"] = "files"):
        """Initialize with a database connection and the item kind to search."""
        self.db = db
        self.kind = kind
        self._fts_table, self._content_table = _TABLES[kind]

    async def search(self, project_id: int, query: str, limit: int) -> list[tuple[str, float]]:
        fts_query = _escape_fts_query(query)
        if not fts_query:
            return []

        # Join FTS results back to the content table via rowid
        sql = f"""
            SELECT c.id, bm25({self._fts_table}) AS score
            FROM {self._fts_table} f
            JOIN {self._content_table} c ON c.id = f.rowid
            WHERE {self._fts_table} MATCH ?
            AND c.project_id = ?
            ORDER BY score
            LIMIT ?
        """
        cursor = await self.db.execute(sql, (fts_query, project_id, limit))
        rows = await cursor.fetchall()
        logger.debug("FTS %s query %r matched %d rows", self.kind, fts_query, len(rows))
        return [(str(row[0]), -row[1]) for row in rows]
