"""Tests for feedback document selectors and selector chains."""

import pytest

from prf_engine.application.dto.expansion_dto import ExpansionConfig, ExpansionDefaults
from prf_engine.application.dto.search_dto import SearchRequest
from prf_engine.application.feedback.selectors import (
    PositiveScoreFeedbackSelector,
    PseudoRelevanceFeedbackSelector,
    RelevanceFeedbackSelector,
    build_feedback_selector,
    build_selector_registry,
)
from prf_engine.domain.errors import StructuralPreconditionError
from prf_engine.domain.models import ResultSet
from prf_engine.infrastructure.index.in_memory_index import InMemoryIndex
from prf_engine.infrastructure.qrels.trec_qrels import TrecQrelsAdapter

DOCS = [
    ("d0", "terrier search engine"),
    ("d1", "terrier engine fast"),
    ("d2", "search engine index"),
    ("d3", "cooking recipes"),
]


@pytest.fixture
def index() -> InMemoryIndex:
    return InMemoryIndex.build(DOCS)


def request_with(docids, scores, qid="q1") -> SearchRequest:  # type: ignore[no-untyped-def]
    return SearchRequest(query_id=qid, result_set=ResultSet(tuple(docids), tuple(scores)))


def config(docs: int = 3) -> ExpansionConfig:
    return ExpansionConfig.from_request(
        SearchRequest(query_id="x"), ExpansionDefaults(expansion_documents=docs)
    )


def test_pseudo_relevance_takes_top_documents():
    sel = PseudoRelevanceFeedbackSelector()
    docs = sel.select(request_with([2, 0, 1, 3], [4.0, 3.0, 2.0, 1.0]), config(docs=2))
    assert [(d.docid, d.rank, d.score) for d in docs] == [(2, 0, 4.0), (0, 1, 3.0)]


def test_pseudo_relevance_caps_at_result_size():
    sel = PseudoRelevanceFeedbackSelector()
    assert len(sel.select(request_with([1], [1.0]), config(docs=5))) == 1
    assert sel.select(request_with([], []), config(docs=5)) == []


def test_relevance_feedback_orders_retrieved_then_unretrieved(index):
    qrels = TrecQrelsAdapter.from_lines(["q1 0 d3 1", "q1 0 d1 1", "q1 0 d0 0", "q1 0 d9 1"])
    sel = RelevanceFeedbackSelector(qrels)
    sel.bind(index)
    docs = sel.select(request_with([0, 1, 2], [3.0, 2.0, 1.0]), config())
    # d1 retrieved at rank 1, d3 unretrieved, d9 not indexed, d0 judged non-relevant
    assert [d.docid for d in docs] == [1, 3]
    assert docs[0].rank == 1
    assert docs[1].score == 0.0


def test_relevance_feedback_without_judgements_for_query(index):
    sel = RelevanceFeedbackSelector(TrecQrelsAdapter.from_lines(["q2 0 d1 1"]))
    sel.bind(index)
    assert sel.select(request_with([0, 1], [2.0, 1.0]), config()) == []


def test_selector_needs_bound_index():
    sel = RelevanceFeedbackSelector(TrecQrelsAdapter.from_lines(["q1 0 d1 1"]))
    with pytest.raises(StructuralPreconditionError):
        sel.select(request_with([0], [1.0]), config())


def test_positive_score_wrapper_filters_inner_output():
    sel = PositiveScoreFeedbackSelector(PseudoRelevanceFeedbackSelector())
    docs = sel.select(request_with([0, 1, 2], [1.5, 0.0, -1.0]), config(docs=3))
    assert [d.docid for d in docs] == [0]


def test_chain_relevant_only_over_pseudo_relevance(index):
    qrels = TrecQrelsAdapter.from_lines(["q1 0 d2 1"])
    registry = build_selector_registry(qrels)
    built = build_feedback_selector(
        registry, ("RelevantOnlyFeedbackSelector", "PseudoRelevanceFeedbackSelector"), index
    )
    assert built.ok
    docs = built.value.select(request_with([0, 2, 1], [3.0, 2.0, 1.0]), config(docs=3))
    assert [d.docid for d in docs] == [2]
    assert built.value.inner.index is index


def test_qrels_selector_without_qrels_is_configuration_error(index):
    built = build_feedback_selector(build_selector_registry(), ("RelevanceFeedbackSelector",), index)
    assert not built.ok
    assert built.error.name == "RelevanceFeedbackSelector"


def test_unknown_selector_name(index):
    built = build_feedback_selector(build_selector_registry(), ("NoSuchSelector",), index)
    assert not built.ok
    assert built.error.name == "NoSuchSelector"
