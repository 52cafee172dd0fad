"""Drop passages whose question and answer text duplicate an earlier one."""

import hashlib

from dataset_search.models.search import ScoredPassage


def passage_text_hash(passage: ScoredPassage) -> str:
    """Hash of q+a with everything but letters and digits removed."""
    normalized = "".join(ch for ch in passage.text if ch.isalnum())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def dedupe_passages(passages: list[ScoredPassage]) -> list[ScoredPassage]:
    """Keep the first passage for each normalized text, preserving order."""
    seen: set[str] = set()
    unique: list[ScoredPassage] = []
    for passage in passages:
        digest = passage_text_hash(passage)
        if digest in seen:
            continue
        seen.add(digest)
        unique.append(passage)
    return unique
