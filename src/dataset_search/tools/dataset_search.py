"""dataset_search MCP tool: hybrid multi-query search over datasets."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from dataset_search.config import get_default_team_id, get_embedding_model
from dataset_search.models.search import SearchRequest
from dataset_search.search.pipeline import DatasetSearchPipeline
from dataset_search.tools.formatters import format_search_response

logger = logging.getLogger(__name__)


def build_search_request(
    queries: list[str],
    dataset_ids: list[str],
    *,
    search_mode: str = "embedding",
    similarity: float = 0.0,
    token_limit: int = 5000,
    using_rerank: bool = False,
    rerank_query: str | None = None,
    model: str | None = None,
) -> SearchRequest:
    """Map tool arguments onto a SearchRequest for the configured team."""
    return SearchRequest(
        team_id=get_default_team_id(),
        model=model or get_embedding_model(),
        similarity=similarity,
        limit=token_limit,
        dataset_ids=dataset_ids,
        search_mode=search_mode,
        using_rerank=using_rerank,
        rerank_query=rerank_query or (queries[0] if queries else ""),
        queries=queries,
    )


def register_dataset_search(mcp: FastMCP) -> None:
    """Register the dataset_search tool with the MCP server."""

    @mcp.tool()
    async def dataset_search(
        queries: Annotated[
            list[str],
            Field(description="One or more query strings", min_length=1, max_length=10),
        ],
        dataset_ids: Annotated[list[str], Field(description="Datasets to search")],
        search_mode: Annotated[
            str, Field(description="embedding, fullText or mixed (unknown -> embedding)")
        ] = "embedding",
        similarity: Annotated[
            float, Field(description="Minimum relevance score (0-1)", ge=0.0, le=1.0)
        ] = 0.0,
        token_limit: Annotated[
            int, Field(description="Token budget for the returned passages", ge=0)
        ] = 5000,
        using_rerank: Annotated[
            bool, Field(description="Re-score candidates with the configured reranker")
        ] = False,
        rerank_query: Annotated[
            str | None, Field(description="Query for the reranker (defaults to first query)")
        ] = None,
        model: Annotated[
            str | None, Field(description="Embedding model (defaults to DS_EMBEDDING_MODEL)")
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Search knowledge-base datasets with semantic and/or full-text recall.

        Recall results from every query are merged with Reciprocal Rank Fusion,
        optionally reranked, deduplicated, filtered by similarity and trimmed to
        the token budget.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        request = build_search_request(
            queries,
            dataset_ids,
            search_mode=search_mode,
            similarity=similarity,
            token_limit=token_limit,
            using_rerank=using_rerank,
            rerank_query=rerank_query,
            model=model,
        )

        pipeline: DatasetSearchPipeline = ctx.lifespan_context["pipeline"]
        response = await pipeline.search(request)
        return format_search_response(response)
