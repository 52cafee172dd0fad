"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from dataset_search.config import (
    get_db_path,
    get_embedding_dim,
    get_log_level,
    get_rerank_url,
    is_rerank_configured,
)
from dataset_search.db.connection import create_connection
from dataset_search.rerank import HttpRerankClient, Reranker
from dataset_search.search.embeddings import OllamaEmbeddingClient
from dataset_search.search.pipeline import DatasetSearchPipeline, SearchCapabilities
from dataset_search.search.protocols import RecallBackends
from dataset_search.search.tokens import count_tokens
from dataset_search.store.dataset_store import DatasetStore
from dataset_search.tools.dataset_search import register_dataset_search


def _create_reranker() -> Reranker | None:
    """Create the rerank client if a rerank endpoint is configured."""
    url = get_rerank_url()
    if url is None:
        return None
    return HttpRerankClient(url)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage database connection, embedding and rerank client lifecycle."""
    # Log to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path, embedding_dim=get_embedding_dim())

    store = DatasetStore(db)
    embedder = OllamaEmbeddingClient()
    reranker = _create_reranker()
    capabilities = SearchCapabilities(rerank_available=is_rerank_configured())

    if await embedder.is_available():
        logger.info("Ollama available, embedding recall enabled")
    else:
        logger.warning("Ollama unavailable, embedding and mixed searches will fail")

    if reranker is not None:
        logger.info("Reranker configured at %s", get_rerank_url())
    else:
        logger.info("No reranker configured, rerank requests are ignored")

    pipeline = DatasetSearchPipeline(
        RecallBackends(embedder=embedder, vectors=store, lexical=store, documents=store),
        count_tokens,
        reranker=reranker,
        capabilities=capabilities,
    )

    try:
        yield {"db": db, "store": store, "pipeline": pipeline}
    finally:
        if reranker is not None:
            await reranker.close()
        await embedder.close()
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
Searches knowledge-base datasets made of question/answer passages.

dataset_search: pass one or more phrasings of the question in `queries` \
(several phrasings improve recall) and the datasets to search.
- search_mode "embedding": semantic search; `similarity` filters weak matches.
- search_mode "fullText": keyword search; no similarity filter.
- search_mode "mixed": both, fused by rank.
- using_rerank: re-score with the configured reranker; `similarity` then \
applies to the rerank score. If the reranker fails the search still succeeds.
- token_limit bounds the total size of returned passages; at least one \
passage is always returned when anything matched.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server."""
    mcp = FastMCP(
        "dataset-search",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )
    register_dataset_search(mcp)
    return mcp
