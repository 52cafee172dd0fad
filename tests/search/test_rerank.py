"""Tests for the rerank stage."""

import httpx
import pytest

from dataset_search.models.search import ScoreType
from dataset_search.search.rerank import (
    RerankApplied,
    RerankDegraded,
    RerankSkipped,
    rerank_passages,
)
from tests.conftest import FakeReranker, make_passage


@pytest.fixture
def candidates():
    return [
        make_passage("p1", q="q1", a="a1", scores=[(ScoreType.EMBEDDING, 0.9)]),
        make_passage("p2", q="q2", a="a2", scores=[(ScoreType.FULL_TEXT, 4.0)]),
        make_passage("p3", q="q3", a="a3"),
    ]


@pytest.mark.asyncio
async def test_disabled_skips_without_calling(candidates):
    reranker = FakeReranker({"p1": 0.5})
    outcome = await rerank_passages(reranker, "query", candidates, enabled=False)
    assert isinstance(outcome, RerankSkipped)
    assert outcome.passages == []
    assert reranker.calls == []


@pytest.mark.asyncio
async def test_no_reranker_skips(candidates):
    outcome = await rerank_passages(None, "query", candidates, enabled=True)
    assert isinstance(outcome, RerankSkipped)


@pytest.mark.asyncio
async def test_applied_in_reranker_order(candidates):
    reranker = FakeReranker({"p1": 0.2, "p2": 0.95, "p3": 0.6})
    outcome = await rerank_passages(reranker, "query", candidates, enabled=True)

    assert isinstance(outcome, RerankApplied)
    assert [p.id for p in outcome.passages] == ["p2", "p3", "p1"]
    top = outcome.passages[0]
    assert len(top.score) == 1
    assert top.score[0].type == ScoreType.RERANK
    assert top.score[0].value == pytest.approx(0.95)
    assert top.score[0].rank == 0
    assert outcome.passages[2].score[0].rank == 2


@pytest.mark.asyncio
async def test_documents_are_question_newline_answer(candidates):
    reranker = FakeReranker({"p1": 0.5})
    await rerank_passages(reranker, "the query", candidates, enabled=True)
    query, documents = reranker.calls[0]
    assert query == "the query"
    assert documents == [("p1", "q1\na1"), ("p2", "q2\na2"), ("p3", "q3\na3")]


@pytest.mark.asyncio
async def test_document_without_answer_keeps_separator():
    reranker = FakeReranker({"p1": 0.5})
    passage = make_passage("p1", q="only a question")
    await rerank_passages(reranker, "query", [passage], enabled=True)
    assert reranker.calls[0][1] == [("p1", "only a question\n")]


@pytest.mark.asyncio
async def test_unknown_ids_dropped(candidates):
    reranker = FakeReranker({"p1": 0.5})
    reranker.extra_ids = ["ghost"]
    outcome = await rerank_passages(reranker, "query", candidates, enabled=True)
    assert isinstance(outcome, RerankApplied)
    assert [p.id for p in outcome.passages] == ["p1"]
    # rank is the position in the reranker's answer, ghost included
    assert outcome.passages[0].score[0].rank == 1


@pytest.mark.asyncio
async def test_error_degrades(candidates):
    reranker = FakeReranker(error=httpx.ConnectError("refused"))
    outcome = await rerank_passages(reranker, "query", candidates, enabled=True)
    assert isinstance(outcome, RerankDegraded)
    assert outcome.passages == []
    assert "refused" in outcome.reason


@pytest.mark.asyncio
async def test_empty_answer_degrades(candidates):
    reranker = FakeReranker({})
    outcome = await rerank_passages(reranker, "query", candidates, enabled=True)
    assert isinstance(outcome, RerankDegraded)
    assert outcome.reason == "reranker returned no results"


@pytest.mark.asyncio
async def test_no_candidates_degrades_without_calling():
    reranker = FakeReranker({"p1": 0.5})
    outcome = await rerank_passages(reranker, "query", [], enabled=True)
    assert isinstance(outcome, RerankDegraded)
    assert reranker.calls == []
