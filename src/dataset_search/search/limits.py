"""Recall quotas per search mode."""

from dataset_search.models.search import RecallLimits, SearchMode

_RECALL_LIMITS = {
    SearchMode.EMBEDDING: RecallLimits(embedding_limit=100, full_text_limit=0),
    SearchMode.FULL_TEXT: RecallLimits(embedding_limit=0, full_text_limit=100),
    SearchMode.MIXED: RecallLimits(embedding_limit=80, full_text_limit=60),
}


def count_recall_limit(mode: SearchMode | str | None) -> RecallLimits:
    """How many candidates each source may recall for the given mode."""
    return _RECALL_LIMITS[SearchMode.coerce(mode)]
