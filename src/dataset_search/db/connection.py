"""Open the dataset database: aiosqlite, FTS5 and (when loadable) sqlite-vec."""

import logging
from pathlib import Path

import aiosqlite
import sqlite_vec

from dataset_search.config import get_db_path
from dataset_search.db.sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)


async def _load_sqlite_vec(conn: aiosqlite.Connection) -> bool:
    """Load sqlite-vec into the connection. Returns False if the platform refuses."""

    def _load(raw) -> None:
        raw.enable_load_extension(True)
        try:
            sqlite_vec.load(raw)
        finally:
            raw.enable_load_extension(False)

    try:
        await conn._execute(_load, conn._conn)  # type: ignore[no-untyped-call]
    except (AttributeError, aiosqlite.Error) as exc:
        logger.warning("sqlite-vec unavailable (%s), embedding recall disabled", exc)
        return False
    return True


async def create_connection(
    db_path: Path | str | None = None, *, embedding_dim: int = 1024
) -> SQLiteBackend:
    """Open (creating if needed) the dataset database and apply its schema.

    Pass ":memory:" for a throwaway database.
    """
    target = str(db_path or get_db_path())
    if target != ":memory:":
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(target)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")

    db = SQLiteBackend(conn)
    await db.apply_schema(
        embedding_dim=embedding_dim, with_vectors=await _load_sqlite_vec(conn)
    )
    logger.debug("Opened %s (vector index %s)", target, "on" if db.vec_enabled else "off")
    return db
