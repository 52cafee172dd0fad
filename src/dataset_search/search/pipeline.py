"""Hybrid dataset search: recall, fuse, rerank, filter and trim."""

import logging
from dataclasses import dataclass

from dataset_search.models.search import SearchRequest, SearchResponse
from dataset_search.rerank.provider import Reranker
from dataset_search.search.assembler import (
    build_rerank_candidates,
    filter_by_similarity,
    fuse_final,
    trim_to_token_budget,
)
from dataset_search.search.limits import count_recall_limit
from dataset_search.search.multi_query import multi_query_recall
from dataset_search.search.protocols import RecallBackends, TokenCounter
from dataset_search.search.rerank import RerankApplied, RerankDegraded, rerank_passages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchCapabilities:
    """Process-wide features the pipeline may use."""

    rerank_available: bool = False


class DatasetSearchPipeline:
    """Turns a batch of queries into one deduplicated, budget-bounded ranked list."""

    def __init__(
        self,
        backends: RecallBackends,
        count_tokens: TokenCounter,
        reranker: Reranker | None = None,
        capabilities: SearchCapabilities | None = None,
    ):
        """Initialize with recall backends, a token counter and an optional reranker."""
        self.backends = backends
        self.count_tokens = count_tokens
        self.reranker = reranker
        self.capabilities = capabilities or SearchCapabilities(
            rerank_available=reranker is not None
        )

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Run the full pipeline for one request.

        Recall failures propagate. A failing reranker only turns reranking off.
        """
        rerank_requested = (
            request.using_rerank
            and self.capabilities.rerank_available
            and self.reranker is not None
        )
        limits = count_recall_limit(request.search_mode)

        recalled = await multi_query_recall(self.backends, request, limits)

        candidates = (
            build_rerank_candidates(recalled.embedding, recalled.full_text)
            if rerank_requested
            else []
        )
        outcome = await rerank_passages(
            self.reranker,
            request.rerank_query or request.queries[0],
            candidates,
            enabled=rerank_requested,
        )
        using_rerank = isinstance(outcome, RerankApplied)

        fused = fuse_final(recalled.embedding, recalled.full_text, outcome.passages)
        filtered, using_similarity_filter = filter_by_similarity(
            fused,
            similarity=request.similarity,
            using_rerank=using_rerank,
            search_mode=request.search_mode,
        )
        passages = trim_to_token_budget(filtered, request.limit, self.count_tokens)

        logger.info(
            "Dataset search: mode=%s queries=%d rerank=%s results=%d tokens=%d",
            request.search_mode.value,
            len(request.queries),
            using_rerank,
            len(passages),
            recalled.tokens,
        )
        return SearchResponse(
            passages=passages,
            tokens=recalled.tokens,
            search_mode=request.search_mode,
            limit=request.limit,
            similarity=request.similarity,
            using_rerank=using_rerank,
            using_similarity_filter=using_similarity_filter,
            rerank_degraded_reason=(
                outcome.reason if isinstance(outcome, RerankDegraded) else None
            ),
        )
