"""Compact output formatters for MCP tool responses."""

from dataset_search.models.search import ScoredPassage, SearchResponse

_MAX_TEXT = 400


def _clip(text: str, limit: int = _MAX_TEXT) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 1] + "…"


def format_scores(passage: ScoredPassage) -> str:
    """Format: embedding 0.83 · fullText 4.10 · reRank 0.91."""
    return " · ".join(f"{s.type.value} {s.value:.2f}" for s in passage.score)


def format_passage_header(passage: ScoredPassage) -> str:
    """Format: [id] source #chunk | scores."""
    source = passage.source_name or passage.collection_id
    header = f"[{passage.id}] {source} #{passage.chunk_index}"
    scores = format_scores(passage)
    return f"{header} | {scores}" if scores else header


def format_passage(passage: ScoredPassage) -> str:
    """Header + question + optional answer."""
    lines = [format_passage_header(passage), f"  Q: {_clip(passage.q)}"]
    if passage.a:
        lines.append(f"  A: {_clip(passage.a)}")
    return "\n".join(lines)


def format_search_summary(response: SearchResponse) -> str:
    """Format: mode=mixed | rerank=on | similarity>=0.50 | embedding tokens=12."""
    parts = [
        f"mode={response.search_mode.value}",
        f"rerank={'on' if response.using_rerank else 'off'}",
    ]
    if response.using_similarity_filter:
        parts.append(f"similarity>={response.similarity:.2f}")
    parts.append(f"embedding tokens={response.tokens}")
    return " | ".join(parts)


def format_search_response(response: SearchResponse) -> str:
    """Count + summary + optional degrade note + passages joined by blank lines."""
    if not response.passages:
        return "No results found."

    lines = [f"{len(response.passages)} result(s)", format_search_summary(response)]
    if response.rerank_degraded_reason:
        lines.append(f"Note: rerank disabled ({response.rerank_degraded_reason})")
    lines.append("")
    lines.append("\n\n".join(format_passage(p) for p in response.passages))
    return "\n".join(lines)
