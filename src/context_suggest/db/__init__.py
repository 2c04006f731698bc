"""Database connection and schema management."""

from context_suggest.db.connection import create_connection
from context_suggest.db.schema import apply_schema

__all__ = ["apply_schema", "create_connection"]
