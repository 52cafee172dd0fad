"""Database connection and schema management."""

from dataset_search.db.backend import Cursor, Database, Row
from dataset_search.db.sqlite_backend import SQLiteBackend

__all__ = ["Cursor", "Database", "Row", "SQLiteBackend"]
