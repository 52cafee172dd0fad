"""Environment-variable-based configuration."""

import os
from pathlib import Path


def get_db_path() -> Path:
    """Return the database file path from DS_DB_PATH."""
    raw = os.environ.get("DS_DB_PATH", "~/.local/share/dataset_search/datasets.db")
    return Path(raw).expanduser()


def get_ollama_url() -> str:
    """Return the Ollama API URL from DS_OLLAMA_URL."""
    return os.environ.get("DS_OLLAMA_URL", "http://localhost:11434")


def get_embedding_model() -> str:
    """Return the default embedding model name from DS_EMBEDDING_MODEL."""
    return os.environ.get("DS_EMBEDDING_MODEL", "qwen3-embedding:0.6b")


def get_embedding_dim() -> int:
    """Return the embedding vector dimensions from DS_EMBEDDING_DIM."""
    return int(os.environ.get("DS_EMBEDDING_DIM", "1024"))


def get_ollama_timeout() -> float:
    """Return the Ollama timeout in seconds from DS_OLLAMA_TIMEOUT."""
    return float(os.environ.get("DS_OLLAMA_TIMEOUT", "10.0"))


def get_rerank_url() -> str | None:
    """Return the rerank endpoint URL from DS_RERANK_URL, or None if unset."""
    return os.environ.get("DS_RERANK_URL") or None


def get_rerank_model() -> str:
    """Return the rerank model name from DS_RERANK_MODEL."""
    return os.environ.get("DS_RERANK_MODEL", "bge-reranker-v2-m3")


def get_rerank_api_key() -> str | None:
    """Return the optional rerank bearer token from DS_RERANK_API_KEY."""
    return os.environ.get("DS_RERANK_API_KEY") or None


def get_rerank_timeout() -> float:
    """Return the rerank timeout in seconds from DS_RERANK_TIMEOUT."""
    return float(os.environ.get("DS_RERANK_TIMEOUT", "15.0"))


def is_rerank_configured() -> bool:
    """Return True if a rerank endpoint is configured for this process."""
    return get_rerank_url() is not None


def get_token_encoding() -> str:
    """Return the tiktoken encoding name from DS_TOKEN_ENCODING."""
    return os.environ.get("DS_TOKEN_ENCODING", "cl100k_base")


def get_default_team_id() -> str:
    """Return the team used by the MCP tool from DS_TEAM_ID."""
    return os.environ.get("DS_TEAM_ID", "default")


def get_log_level() -> str:
    """Return the logging level from DS_LOG_LEVEL."""
    return os.environ.get("DS_LOG_LEVEL", "WARNING")
