"""Reranker module."""

from dataset_search.rerank.http import HttpRerankClient
from dataset_search.rerank.provider import Reranker

__all__ = ["HttpRerankClient", "Reranker"]
