"""Reciprocal Rank Fusion (RRF) of ranked passage lists."""

from dataset_search.models.search import ScoredPassage

# RRF constant, standard value from the literature
RRF_K = 60
# k for the rerank list in the final fusion
RERANK_RRF_K = 58


def reciprocal_rank_fusion(
    ranked_lists: list[tuple[int, list[ScoredPassage]]],
) -> list[ScoredPassage]:
    """Merge best-first passage lists into one list ordered by RRF score.

    Each ``(k, passages)`` pair contributes ``1 / (k + rank + 1)`` per passage,
    with ``rank`` 0-based. Passages are merged by id and their score entries are
    concatenated. Ties keep first-seen order across the lists as given.
    """
    rrf_scores: dict[str, float] = {}
    merged: dict[str, ScoredPassage] = {}

    for k, passages in ranked_lists:
        for rank, passage in enumerate(passages):
            rrf_scores[passage.id] = rrf_scores.get(passage.id, 0) + 1.0 / (k + rank + 1)
            existing = merged.get(passage.id)
            if existing is None:
                merged[passage.id] = passage.model_copy(update={"score": list(passage.score)})
            else:
                existing.score.extend(passage.score)

    # sorted() is stable, so equal scores stay in first-seen order
    return sorted(merged.values(), key=lambda p: rrf_scores[p.id], reverse=True)
