"""Optional rerank stage with soft degradation."""

import logging
from dataclasses import dataclass, field

from dataset_search.models.search import ScoredPassage, ScoreEntry, ScoreType
from dataset_search.rerank.provider import Reranker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RerankApplied:
    """The reranker scored the candidates."""

    passages: list[ScoredPassage] = field(default_factory=list)


@dataclass(frozen=True)
class RerankSkipped:
    """Reranking was not requested or not available."""

    passages: list[ScoredPassage] = field(default_factory=list)


@dataclass(frozen=True)
class RerankDegraded:
    """The reranker failed or returned nothing; the search continues without it."""

    reason: str
    passages: list[ScoredPassage] = field(default_factory=list)


RerankOutcome = RerankApplied | RerankSkipped | RerankDegraded


async def rerank_passages(
    reranker: Reranker | None,
    query: str,
    candidates: list[ScoredPassage],
    *,
    enabled: bool,
) -> RerankOutcome:
    """Re-score candidates with the reranker.

    Each returned passage carries only a reRank score entry whose rank is its
    position in the reranker's output. IDs the reranker invents are dropped.
    """
    if not enabled or reranker is None:
        return RerankSkipped()
    if not candidates:
        return RerankDegraded(reason="no candidates to rerank")

    try:
        hits = await reranker.rerank(query, [(p.id, f"{p.q}\n{p.a}") for p in candidates])
    except Exception as exc:
        logger.warning("Rerank failed, continuing without it", exc_info=True)
        return RerankDegraded(reason=f"reranker error: {exc}")

    if not hits:
        logger.warning("Reranker returned no results, continuing without it")
        return RerankDegraded(reason="reranker returned no results")

    by_id = {p.id: p for p in candidates}
    passages: list[ScoredPassage] = []
    for rank, hit in enumerate(hits):
        target = by_id.get(hit.id)
        if target is None:
            continue
        passages.append(
            target.model_copy(
                update={"score": [ScoreEntry(type=ScoreType.RERANK, value=hit.score, rank=rank)]}
            )
        )
    return RerankApplied(passages=passages)
