"""Database backend protocol, a thin abstraction over async DB connections.

Application code programs against these protocols. The SQLite backend is the
concrete implementation; search-specific operations (FTS5, sqlite-vec) live on
the backend so that SQL dialect details stay out of the search pipeline.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Row(Protocol):
    """A database row supporting both named and positional access."""

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        ...

    def keys(self) -> Any:
        """Return column names."""
        ...


@runtime_checkable
class Cursor(Protocol):
    """Async cursor returned by Database.execute()."""

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        ...

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        ...


@runtime_checkable
class Database(Protocol):
    """Async database backend using ``?`` placeholders and SQLite-flavored SQL."""

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        ...

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements (DDL, migrations)."""
        ...

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def close(self) -> None:
        """Close the database connection."""
        ...

    async def fts_search(
        self, fts_query: str, *, team_id: str, dataset_id: str, limit: int = 20
    ) -> list[Row]:
        """Full-text search inside one dataset, best match first."""
        ...

    async def vector_search(
        self, embedding: list[float], *, team_id: str, dataset_id: str, limit: int = 20
    ) -> list[tuple[str, str, float]]:
        """KNN search inside one team and dataset.

        Returns (index_id, collection_id, distance) triples, nearest first.
        """
        ...
