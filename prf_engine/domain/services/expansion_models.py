"""Term-scoring models for pseudo-relevance feedback.

Why: The engine ranks candidate terms through one small contract so that any
model can be plugged in by name. Models are pure functions of the statistics
they receive, which makes a single instance safe to share between requests.

Models:
- Bo1: Bose-Einstein statistics, Poisson approximation of the collection
- Bo2: Bose-Einstein statistics, frequency scaled by feedback-set length
- KL:  Kullback-Leibler divergence between feedback set and collection
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from prf_engine.domain.models import CollectionStatistics


def _log2(x: float) -> float:
    return math.log(x) / math.log(2.0)


@dataclass(frozen=True)
class TermStatistics:
    """Per-candidate inputs to a model."""

    within_feedback_frequency: float
    feedback_document_frequency: int
    collection_frequency: float
    collection_document_frequency: int
    term: str = ""


@dataclass(frozen=True)
class FeedbackStatistics:
    """Feedback-set and collection-wide inputs shared by all candidates."""

    total_document_length: float
    number_of_feedback_documents: int
    collection: CollectionStatistics


class ExpansionModel(ABC):
    """Contract every expansion model honours.

    score() must be deterministic, finite and non-negative. Scores are only
    comparable between candidates of the same scoring run.
    """

    def __init__(self, rocchio_beta: float = 0.4, parameter_free: bool = True) -> None:
        self.rocchio_beta = rocchio_beta
        self.parameter_free = parameter_free

    @abstractmethod
    def score(self, term: TermStatistics, feedback: FeedbackStatistics) -> float: ...

    def normaliser(
        self,
        top: TermStatistics,
        top_score: float,
        max_within_frequency: float,
        feedback: FeedbackStatistics,
    ) -> float:
        """Value the raw scores are divided by to obtain query weights.

        Parameter-free models use the score of an ideal term, one whose every
        occurrence falls in the feedback set with the largest observed
        within-feedback frequency. Otherwise the top score is used.
        """
        if self.parameter_free:
            ideal = TermStatistics(
                within_feedback_frequency=max_within_frequency,
                feedback_document_frequency=top.feedback_document_frequency,
                collection_frequency=max_within_frequency,
                collection_document_frequency=top.feedback_document_frequency,
                term=top.term,
            )
            value = self.score(ideal, feedback)
            if value > 0:
                return value
        return top_score

    def weight(self, score: float, normaliser: float) -> float:
        if normaliser <= 0:
            return 0.0
        w = score / normaliser
        if self.parameter_free:
            return w
        return self.rocchio_beta * w

    def get_info(self) -> str:
        if self.parameter_free:
            return type(self).__name__
        return f"{type(self).__name__}b{self.rocchio_beta}"


class Bo1(ExpansionModel):
    """Bose-Einstein 1: f = F / N."""

    def score(self, term: TermStatistics, feedback: FeedbackStatistics) -> float:
        n = feedback.collection.number_of_documents
        tf = term.within_feedback_frequency
        if tf <= 0 or term.collection_frequency <= 0 or n <= 0:
            return 0.0
        f = term.collection_frequency / n
        return tf * _log2((1.0 + f) / f) + _log2(1.0 + f)


class Bo2(ExpansionModel):
    """Bose-Einstein 2: f = F * feedback length / collection tokens."""

    def score(self, term: TermStatistics, feedback: FeedbackStatistics) -> float:
        tokens = feedback.collection.number_of_tokens
        tf = term.within_feedback_frequency
        if tf <= 0 or term.collection_frequency <= 0 or tokens <= 0:
            return 0.0
        f = term.collection_frequency * feedback.total_document_length / tokens
        if f <= 0:
            return 0.0
        return tf * _log2((1.0 + f) / f) + _log2(1.0 + f)


class KL(ExpansionModel):
    """Kullback-Leibler divergence; terms rarer in feedback than in the collection score 0."""

    def score(self, term: TermStatistics, feedback: FeedbackStatistics) -> float:
        length = feedback.total_document_length
        tokens = feedback.collection.number_of_tokens
        if length <= 0 or tokens <= 0 or term.collection_frequency <= 0:
            return 0.0
        p_feedback = term.within_feedback_frequency / length
        p_collection = term.collection_frequency / tokens
        if p_feedback <= 0 or p_feedback < p_collection:
            return 0.0
        return p_feedback * _log2(p_feedback / p_collection)
