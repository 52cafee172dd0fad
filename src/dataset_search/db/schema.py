"""DDL for the dataset database."""

from dataset_search.db.backend import Database

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS dataset_collections (
    id TEXT PRIMARY KEY,
    team_id TEXT NOT NULL,
    dataset_id TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    file_id TEXT,
    raw_link TEXT,
    external_file_id TEXT,
    external_file_url TEXT,
    forbid INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_collections_scope ON dataset_collections(team_id, dataset_id);

CREATE TABLE IF NOT EXISTS dataset_data (
    id TEXT PRIMARY KEY,
    team_id TEXT NOT NULL,
    dataset_id TEXT NOT NULL,
    collection_id TEXT NOT NULL REFERENCES dataset_collections(id),
    q TEXT NOT NULL,
    a TEXT NOT NULL DEFAULT '',
    chunk_index INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_data_scope ON dataset_data(team_id, dataset_id);
CREATE INDEX IF NOT EXISTS idx_data_collection ON dataset_data(collection_id);

CREATE TABLE IF NOT EXISTS dataset_data_indexes (
    index_id TEXT PRIMARY KEY,
    data_id TEXT NOT NULL REFERENCES dataset_data(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_indexes_data ON dataset_data_indexes(data_id);

CREATE VIRTUAL TABLE IF NOT EXISTS dataset_data_fts USING fts5(
    q,
    a,
    content='dataset_data',
    content_rowid='rowid',
    tokenize='unicode61'
);

-- Triggers to keep FTS in sync with the content table
CREATE TRIGGER IF NOT EXISTS dataset_data_fts_ai AFTER INSERT ON dataset_data BEGIN
    INSERT INTO dataset_data_fts(rowid, q, a) VALUES (new.rowid, new.q, new.a);
END;

CREATE TRIGGER IF NOT EXISTS dataset_data_fts_ad AFTER DELETE ON dataset_data BEGIN
    INSERT INTO dataset_data_fts(dataset_data_fts, rowid, q, a)
    VALUES ('delete', old.rowid, old.q, old.a);
END;

CREATE TRIGGER IF NOT EXISTS dataset_data_fts_au AFTER UPDATE ON dataset_data BEGIN
    INSERT INTO dataset_data_fts(dataset_data_fts, rowid, q, a)
    VALUES ('delete', old.rowid, old.q, old.a);
    INSERT INTO dataset_data_fts(rowid, q, a) VALUES (new.rowid, new.q, new.a);
END;
"""


def _vec_table_sql(dim: int) -> str:
    return f"""
CREATE VIRTUAL TABLE IF NOT EXISTS dataset_vec USING vec0(
    index_id TEXT PRIMARY KEY,
    team_id TEXT partition key,
    embedding FLOAT[{dim}] distance_metric=cosine,
    dataset_id TEXT,
    collection_id TEXT
);
"""


async def apply_schema(db: Database) -> None:
    """Apply the database schema."""
    await db.executescript(SCHEMA_SQL)

    cursor = await db.execute("SELECT version FROM schema_version")
    row = await cursor.fetchone()
    if row is None:
        await db.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

    await db.commit()


async def apply_vec_schema(db: Database, dim: int = 1024) -> None:
    """Create the vec0 virtual table. Requires sqlite-vec extension loaded."""
    await db.executescript(_vec_table_sql(dim))
    await db.commit()
