"""SQLite implementation of the Database protocol.

Thin wrapper around aiosqlite.Connection. Full-text search runs on FTS5 and
vector search on a sqlite-vec ``vec0`` table.
"""

from __future__ import annotations

import logging
import struct
from typing import TYPE_CHECKING, Any

import aiosqlite

if TYPE_CHECKING:
    from dataset_search.db.backend import Cursor, Row

logger = logging.getLogger(__name__)


def _serialize_f32(vec: list[float]) -> bytes:
    """Serialize a list of floats to a compact binary format for sqlite-vec."""
    return struct.pack(f"{len(vec)}f", *vec)


class SQLiteCursor:
    """Wraps aiosqlite.Cursor to satisfy the Cursor protocol."""

    def __init__(self, cursor: aiosqlite.Cursor) -> None:
        """Initialize with an aiosqlite cursor."""
        self._cursor = cursor

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        return await self._cursor.fetchone()

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        return list(await self._cursor.fetchall())


class SQLiteBackend:
    """SQLite implementation of the Database protocol.

    The raw connection is exposed as ``_conn`` for SQLite-specific operations
    (extension loading, PRAGMA) that only run during connection setup.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        """Initialize with an aiosqlite connection."""
        self._conn = conn
        self.vec_enabled = False

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        cursor = await self._conn.execute(sql, params)
        return SQLiteCursor(cursor)

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements (DDL, migrations)."""
        await self._conn.executescript(sql)

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()

    # -- FTS5 search --

    async def fts_search(
        self, fts_query: str, *, team_id: str, dataset_id: str, limit: int = 20
    ) -> list[Row]:
        """Full-text search via FTS5 BM25, restricted to one team and dataset.

        Rows carry the passage columns plus ``score``. BM25 is negative with more
        negative meaning a better match, so rows come back most negative first.
        """
        if not fts_query:
            return []
        cursor = await self._conn.execute(
            """SELECT d.id, d.dataset_id, d.collection_id, d.q, d.a, d.chunk_index,
                   bm25(dataset_data_fts) AS score
            FROM dataset_data_fts f
            JOIN dataset_data d ON d.rowid = f.rowid
            WHERE dataset_data_fts MATCH ?
            AND d.team_id = ?
            AND d.dataset_id = ?
            ORDER BY score
            LIMIT ?""",
            (fts_query, team_id, dataset_id, limit),
        )
        return list(await cursor.fetchall())

    # -- Vector operations (sqlite-vec) --

    async def vector_store(
        self,
        index_id: str,
        embedding: list[float],
        *,
        team_id: str,
        dataset_id: str,
        collection_id: str,
    ) -> None:
        """Upsert an index fragment embedding, tagged with its owning scope."""
        blob = _serialize_f32(embedding)
        # vec0 doesn't support ON CONFLICT, so delete then insert
        await self._conn.execute("DELETE FROM dataset_vec WHERE index_id = ?", (index_id,))
        await self._conn.execute(
            """INSERT INTO dataset_vec (index_id, team_id, embedding, dataset_id, collection_id)
            VALUES (?, ?, ?, ?, ?)""",
            (index_id, team_id, blob, dataset_id, collection_id),
        )

    async def vector_search(
        self, embedding: list[float], *, team_id: str, dataset_id: str, limit: int = 20
    ) -> list[tuple[str, str, float]]:
        """KNN via sqlite-vec cosine distance, scoped inside the index.

        ``team_id`` is the partition key and ``dataset_id`` a metadata column, so
        the ``limit`` nearest fragments all belong to the requested scope.
        """
        if limit <= 0:
            return []
        blob = _serialize_f32(embedding)
        cursor = await self._conn.execute(
            """SELECT index_id, collection_id, distance
            FROM dataset_vec
            WHERE embedding MATCH ?
            AND k = ?
            AND team_id = ?
            AND dataset_id = ?
            ORDER BY distance""",
            (blob, limit, team_id, dataset_id),
        )
        rows = await cursor.fetchall()
        return [(row[0], row[1], row[2]) for row in rows]

    # -- Schema --

    async def apply_schema(self, *, embedding_dim: int = 1024, with_vectors: bool = True) -> None:
        """Apply all SQLite DDL: tables, FTS5 and, if requested, the vec0 index."""
        from dataset_search.db.schema import apply_schema, apply_vec_schema

        await apply_schema(self)
        if not with_vectors:
            return
        try:
            await apply_vec_schema(self, dim=embedding_dim)
        except aiosqlite.Error:
            logger.warning("vec0 table not created, embedding recall disabled", exc_info=True)
            return
        self.vec_enabled = True
