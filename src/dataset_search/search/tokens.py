"""Token counting using tiktoken."""

import logging
from functools import lru_cache

import tiktoken

from dataset_search.config import get_token_encoding

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def get_encoding(name: str) -> tiktoken.Encoding:
    """Load (once) the named tiktoken encoding."""
    return tiktoken.get_encoding(name)


def count_tokens(text: str) -> int:
    """Count model tokens in text using the configured encoding."""
    if not text:
        return 0
    return len(get_encoding(get_token_encoding()).encode(text, disallowed_special=()))
