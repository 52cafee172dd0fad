"""Query helpers for the dataset tables."""

from dataset_search.db.backend import Database, Row
from dataset_search.models.dataset import DatasetCollection, DatasetPassage


def _placeholders(count: int) -> str:
    return ", ".join("?" * count)


def row_to_collection(row: Row) -> DatasetCollection:
    """Convert a database row to a DatasetCollection."""
    return DatasetCollection(
        id=row["id"],
        team_id=row["team_id"],
        dataset_id=row["dataset_id"],
        name=row["name"],
        file_id=row["file_id"],
        raw_link=row["raw_link"],
        external_file_id=row["external_file_id"],
        external_file_url=row["external_file_url"],
        forbid=bool(row["forbid"]),
    )


async def get_forbidden_collection_ids(
    db: Database, team_id: str, dataset_ids: list[str]
) -> set[str]:
    """IDs of collections flagged forbidden within the team's datasets."""
    if not dataset_ids:
        return set()
    cursor = await db.execute(
        f"""SELECT id FROM dataset_collections
        WHERE team_id = ? AND dataset_id IN ({_placeholders(len(dataset_ids))})
        AND forbid = 1""",
        [team_id, *dataset_ids],
    )
    return {row[0] for row in await cursor.fetchall()}


async def get_collections(db: Database, collection_ids: list[str]) -> list[DatasetCollection]:
    """Fetch collections by ID. Unknown IDs are skipped."""
    if not collection_ids:
        return []
    cursor = await db.execute(
        f"SELECT * FROM dataset_collections WHERE id IN ({_placeholders(len(collection_ids))})",
        collection_ids,
    )
    return [row_to_collection(row) for row in await cursor.fetchall()]


async def get_passages_by_index_ids(
    db: Database,
    team_id: str,
    dataset_ids: list[str],
    collection_ids: list[str],
    index_ids: list[str],
) -> list[DatasetPassage]:
    """Fetch passages owning any of the index fragments, within the given scope."""
    if not dataset_ids or not collection_ids or not index_ids:
        return []
    cursor = await db.execute(
        f"""SELECT d.id, d.team_id, d.dataset_id, d.collection_id, d.q, d.a, d.chunk_index,
               i.index_id
        FROM dataset_data d
        JOIN dataset_data_indexes i ON i.data_id = d.id
        WHERE d.team_id = ?
        AND d.dataset_id IN ({_placeholders(len(dataset_ids))})
        AND d.collection_id IN ({_placeholders(len(collection_ids))})
        AND d.id IN (
            SELECT data_id FROM dataset_data_indexes
            WHERE index_id IN ({_placeholders(len(index_ids))})
        )
        ORDER BY d.id""",
        [team_id, *dataset_ids, *collection_ids, *index_ids],
    )
    passages: dict[str, DatasetPassage] = {}
    for row in await cursor.fetchall():
        passage = passages.get(row["id"])
        if passage is None:
            passage = DatasetPassage(
                id=row["id"],
                team_id=row["team_id"],
                dataset_id=row["dataset_id"],
                collection_id=row["collection_id"],
                q=row["q"],
                a=row["a"],
                chunk_index=row["chunk_index"],
            )
            passages[passage.id] = passage
        passage.indexes.append(row["index_id"])
    return list(passages.values())
