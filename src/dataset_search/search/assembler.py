"""Final assembly: rerank candidates, fusion, similarity filter and token budget."""

import logging

from dataset_search.models.search import ScoredPassage, ScoreType, SearchMode
from dataset_search.search.dedup import dedupe_passages
from dataset_search.search.fusion import RERANK_RRF_K, RRF_K, reciprocal_rank_fusion
from dataset_search.search.protocols import TokenCounter

logger = logging.getLogger(__name__)

# Extra tokens a result may run past the budget before it is cut off outright
TOKEN_BUDGET_OVERFLOW = 500


def build_rerank_candidates(
    embedding: list[ScoredPassage], full_text: list[ScoredPassage]
) -> list[ScoredPassage]:
    """Embedding results first, then full-text results not already present, deduplicated."""
    seen = {p.id for p in embedding}
    union = embedding + [p for p in full_text if p.id not in seen]
    return dedupe_passages(union)


def fuse_final(
    embedding: list[ScoredPassage],
    full_text: list[ScoredPassage],
    reranked: list[ScoredPassage],
) -> list[ScoredPassage]:
    """Fuse the three source lists and drop duplicate texts."""
    fused = reciprocal_rank_fusion(
        [(RRF_K, embedding), (RRF_K, full_text), (RERANK_RRF_K, reranked)]
    )
    return dedupe_passages(fused)


def filter_by_similarity(
    passages: list[ScoredPassage],
    *,
    similarity: float,
    using_rerank: bool,
    search_mode: SearchMode,
) -> tuple[list[ScoredPassage], bool]:
    """Drop passages scoring below ``similarity``. Returns (passages, filter_applied).

    With reranking the reRank score is checked; otherwise embedding mode checks the
    embedding score. Passages without the checked score pass through.
    """
    if using_rerank:
        score_type = ScoreType.RERANK
    elif search_mode == SearchMode.EMBEDDING:
        score_type = ScoreType.EMBEDDING
    else:
        return passages, False

    kept = []
    for passage in passages:
        value = passage.best_score(score_type)
        if value is not None and value < similarity:
            continue
        kept.append(passage)
    return kept, True


def trim_to_token_budget(
    passages: list[ScoredPassage],
    max_tokens: int,
    count_tokens: TokenCounter,
) -> list[ScoredPassage]:
    """Take passages in order until the token budget is spent.

    A passage that would push the total past ``max_tokens + 500`` is excluded; one
    that pushes it past ``max_tokens`` is included and ends the list. If nothing
    fits, the best passage is returned alone.
    """
    results: list[ScoredPassage] = []
    total = 0
    for passage in passages:
        total += count_tokens(passage.text)
        if total > max_tokens + TOKEN_BUDGET_OVERFLOW:
            break
        results.append(passage)
        if total > max_tokens:
            break

    if not results:
        return passages[:1]
    logger.debug("Token budget %d: kept %d of %d passages", max_tokens, len(results), len(passages))
    return results
