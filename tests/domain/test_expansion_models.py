"""Tests for the term-scoring models (Bo1, Bo2, KL)."""

import math

import pytest

from prf_engine.domain.models import CollectionStatistics
from prf_engine.domain.services.expansion_models import (
    KL,
    Bo1,
    Bo2,
    ExpansionModel,
    FeedbackStatistics,
    TermStatistics,
)

COLLECTION = CollectionStatistics(number_of_documents=10, number_of_tokens=100, number_of_unique_terms=30)
FEEDBACK = FeedbackStatistics(total_document_length=20, number_of_feedback_documents=3, collection=COLLECTION)


def stats(tf: float, cf: float, fdf: int = 2, df: int = 3) -> TermStatistics:
    return TermStatistics(
        within_feedback_frequency=tf,
        feedback_document_frequency=fdf,
        collection_frequency=cf,
        collection_document_frequency=df,
    )


def test_bo1_matches_bose_einstein_formula():
    f = 5 / 10
    expected = 3 * math.log2((1 + f) / f) + math.log2(1 + f)
    assert Bo1().score(stats(tf=3, cf=5), FEEDBACK) == pytest.approx(expected)


def test_bo2_scales_frequency_by_feedback_length():
    f = 5 * 20 / 100
    expected = 3 * math.log2((1 + f) / f) + math.log2(1 + f)
    assert Bo2().score(stats(tf=3, cf=5), FEEDBACK) == pytest.approx(expected)


def test_kl_is_divergence_of_feedback_from_collection():
    pd, pc = 4 / 20, 5 / 100
    assert KL().score(stats(tf=4, cf=5), FEEDBACK) == pytest.approx(pd * math.log2(pd / pc))


def test_kl_scores_zero_when_rarer_in_feedback_than_collection():
    assert KL().score(stats(tf=1, cf=50), FEEDBACK) == 0.0


@pytest.mark.parametrize("model", [Bo1(), Bo2(), KL()])
def test_scores_are_finite_and_non_negative(model):
    for tf, cf in [(0, 5), (1, 1), (3, 5), (20, 100), (1, 0)]:
        s = model.score(stats(tf=tf, cf=cf), FEEDBACK)
        assert math.isfinite(s)
        assert s >= 0.0


def test_parameter_free_weight_is_score_over_ideal_term_score():
    model = Bo1()
    top = stats(tf=3, cf=5)
    top_score = model.score(top, FEEDBACK)
    norm = model.normaliser(top, top_score, max_within_frequency=3, feedback=FEEDBACK)
    assert norm == pytest.approx(model.score(stats(tf=3, cf=3), FEEDBACK))
    assert model.weight(top_score, norm) == pytest.approx(top_score / norm)


def test_rocchio_weight_uses_beta_and_top_score():
    model = Bo1(rocchio_beta=0.5, parameter_free=False)
    top = stats(tf=3, cf=5)
    top_score = model.score(top, FEEDBACK)
    norm = model.normaliser(top, top_score, max_within_frequency=3, feedback=FEEDBACK)
    assert norm == top_score
    assert model.weight(top_score, norm) == pytest.approx(0.5)
    assert model.weight(top_score / 2, norm) == pytest.approx(0.25)


def test_weight_is_zero_for_non_positive_normaliser():
    assert Bo1().weight(1.0, 0.0) == 0.0


def test_get_info_includes_beta_only_when_not_parameter_free():
    assert Bo1().get_info() == "Bo1"
    assert KL(rocchio_beta=0.4, parameter_free=False).get_info() == "KLb0.4"


def test_models_share_the_abstract_contract():
    for cls in (Bo1, Bo2, KL):
        assert issubclass(cls, ExpansionModel)
    with pytest.raises(TypeError):
        ExpansionModel()  # type: ignore[abstract]
