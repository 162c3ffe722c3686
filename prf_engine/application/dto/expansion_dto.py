# prf_engine/application/dto/expansion_dto.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from prf_engine.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from prf_engine.application.ports.request_port import RequestPort

CONTROL_EXP_DOCS = "qe_fb_docs"
CONTROL_EXP_TERMS = "qe_fb_terms"
CONTROL_MODEL = "qemodel"
CONTROL_FEEDBACK_SELECTOR = "qe_feedback_selector"
CONTROL_EXPANSION_TERMS = "qe_expansion_terms"
CONTROL_NO_SECOND_PASS = "qe_no_2nd_matching"

_NAME_SEP = re.compile(r"\s*,\s*")


def split_names(value: str) -> tuple[str, ...]:
    """Split a comma-separated implementation chain, dropping empty entries."""
    return tuple(n for n in _NAME_SEP.split(value.strip()) if n)


def _parse_count(key: str, raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as ex:
        raise ConfigurationError(key, f"expected an integer, got {raw!r}") from ex
    if value < 0:
        raise ConfigurationError(key, f"must be >= 0, got {value}")
    return value


def _parse_flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ExpansionDefaults:
    """
    Process-wide defaults, filled from AppSettings by the composition root.

    - expansion_documents: feedback documents taken from the first pass
    - expansion_terms: terms to add; 0 means conservative (re-weight only)
    - model_name: default model, None means "warn and fall back to Bo1"
    - feedback_selector: selector chain, outermost first
    - expansion_terms_chain: collector chain, outermost first
    - no_second_pass: skip re-matching with the expanded query
    """

    expansion_documents: int = 3
    expansion_terms: int = 10
    model_name: str | None = None
    feedback_selector: tuple[str, ...] = ("PseudoRelevanceFeedbackSelector",)
    expansion_terms_chain: tuple[str, ...] = ("BagExpansionTerms",)
    no_second_pass: bool = False


@dataclass(frozen=True)
class ExpansionConfig:
    """Effective configuration of one request (controls over defaults)."""

    expansion_documents: int
    expansion_terms: int
    model_name: str | None
    feedback_selector: tuple[str, ...]
    expansion_terms_chain: tuple[str, ...]
    no_second_pass: bool

    @classmethod
    def from_request(cls, request: RequestPort, defaults: ExpansionDefaults) -> ExpansionConfig:
        """Parse and validate the request's controls once.

        Raises:
            ConfigurationError: If a count control is not a non-negative integer
        """
        docs = defaults.expansion_documents
        raw = request.get_control(CONTROL_EXP_DOCS)
        if raw:
            docs = _parse_count(CONTROL_EXP_DOCS, raw)

        terms = defaults.expansion_terms
        raw = request.get_control(CONTROL_EXP_TERMS)
        if raw:
            terms = _parse_count(CONTROL_EXP_TERMS, raw)

        model = request.get_control(CONTROL_MODEL) or defaults.model_name or None

        selector = defaults.feedback_selector
        raw = request.get_control(CONTROL_FEEDBACK_SELECTOR)
        if raw and split_names(raw):
            selector = split_names(raw)

        expanders = defaults.expansion_terms_chain
        raw = request.get_control(CONTROL_EXPANSION_TERMS)
        if raw and split_names(raw):
            expanders = split_names(raw)

        no_second_pass = defaults.no_second_pass
        raw = request.get_control(CONTROL_NO_SECOND_PASS)
        if raw:
            no_second_pass = _parse_flag(raw)

        return cls(
            expansion_documents=docs,
            expansion_terms=terms,
            model_name=model,
            feedback_selector=selector,
            expansion_terms_chain=expanders,
            no_second_pass=no_second_pass,
        )


def expansion_controls(
    model: str | None = None,
    feedback_documents: int | None = None,
    feedback_terms: int | None = None,
    no_second_pass: bool = False,
    feedback_selector: str | None = None,
) -> dict[str, str]:
    """Request controls for the given overrides; None leaves the default."""
    controls: dict[str, str] = {}
    if model:
        controls[CONTROL_MODEL] = model
    if feedback_documents is not None:
        controls[CONTROL_EXP_DOCS] = str(feedback_documents)
    if feedback_terms is not None:
        controls[CONTROL_EXP_TERMS] = str(feedback_terms)
    if no_second_pass:
        controls[CONTROL_NO_SECOND_PASS] = "true"
    if feedback_selector:
        controls[CONTROL_FEEDBACK_SELECTOR] = feedback_selector
    return controls
