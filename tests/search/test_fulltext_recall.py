"""Tests for full-text recall."""

import pytest

from dataset_search.models.search import ScoreType, SearchRequest
from dataset_search.search.fulltext_recall import fulltext_recall, segment_query
from tests.conftest import TEAM


def _request(**kwargs) -> SearchRequest:
    defaults = {
        "team_id": TEAM,
        "model": "embed-model",
        "limit": 1000,
        "dataset_ids": ["ds-1", "ds-2"],
        "search_mode": "fullText",
        "queries": ["pytest fixtures"],
    }
    defaults.update(kwargs)
    return SearchRequest(**defaults)


def test_segment_query_quotes_and_or_joins():
    assert segment_query("pytest fixtures") == '"pytest" OR "fixtures"'


def test_segment_query_drops_fts_syntax():
    assert segment_query('NOT "drop" (table)*') == '"NOT" OR "drop" OR "table"'


def test_segment_query_empty():
    assert segment_query("  ?! ") == ""


@pytest.mark.asyncio
async def test_zero_limit_issues_no_query(backends, fake_backend):
    result = await fulltext_recall(
        backends, _request(), "pytest fixtures", limit=0, forbid_collection_ids=frozenset()
    )
    assert result == []
    assert fake_backend.lexical_calls == []


@pytest.mark.asyncio
async def test_searches_each_dataset_and_resorts(backends, fake_backend):
    fake_backend.add_passage("p1")
    fake_backend.add_passage("p2", collection_id="col-2")
    fake_backend.add_passage("p3")
    fake_backend.set_lexical_hits("pytest fixtures", [("p1", 2.0), ("p3", 1.0), ("p2", 5.0)])

    result = await fulltext_recall(
        backends, _request(), "pytest fixtures", limit=10, forbid_collection_ids=frozenset()
    )

    assert sorted(fake_backend.lexical_calls) == ["ds-1", "ds-2"]
    assert [p.id for p in result] == ["p2", "p1", "p3"]
    assert [s.rank for p in result for s in p.score] == [0, 1, 2]
    assert all(p.score[0].type == ScoreType.FULL_TEXT for p in result)
    assert result[0].source_id == "https://example.com/doc"


@pytest.mark.asyncio
async def test_forbidden_collection_excluded(backends, fake_backend):
    fake_backend.add_passage("p1")
    fake_backend.add_passage("p2", collection_id="col-2")
    fake_backend.set_lexical_hits("pytest fixtures", [("p1", 2.0), ("p2", 5.0)])

    result = await fulltext_recall(
        backends,
        _request(),
        "pytest fixtures",
        limit=10,
        forbid_collection_ids=frozenset({"col-2"}),
    )

    assert [p.id for p in result] == ["p1"]


@pytest.mark.asyncio
async def test_unsegmentable_query_returns_nothing(backends, fake_backend):
    result = await fulltext_recall(
        backends, _request(), "???", limit=10, forbid_collection_ids=frozenset()
    )
    assert result == []
    assert fake_backend.lexical_calls == []


@pytest.mark.asyncio
async def test_lexical_failure_propagates(backends, fake_backend):
    fake_backend.lexical_error = RuntimeError("text index unavailable")
    with pytest.raises(RuntimeError, match="text index unavailable"):
        await fulltext_recall(
            backends, _request(), "pytest fixtures", limit=10, forbid_collection_ids=frozenset()
        )
