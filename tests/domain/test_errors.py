"""Tests for domain errors."""

from prf_engine.domain.errors import (
    ConfigurationError,
    DomainError,
    ExpansionAborted,
    FeedbackIOError,
    StructuralPreconditionError,
    ValidationError,
)


def test_all_expansion_errors_are_domain_errors():
    for err in (
        ValidationError("bad"),
        ConfigurationError("Bo9"),
        StructuralPreconditionError("no direct index"),
        FeedbackIOError("disk"),
        ExpansionAborted("q1"),
    ):
        assert isinstance(err, DomainError)


def test_configuration_error_carries_name_and_detail():
    err = ConfigurationError("NoSuchSelector", "unknown feedback selector")
    assert err.name == "NoSuchSelector"
    assert err.detail == "unknown feedback selector"
    assert str(err) == "NoSuchSelector: unknown feedback selector"


def test_configuration_error_without_detail_renders_name():
    assert str(ConfigurationError("qe_fb_docs")) == "qe_fb_docs"


def test_expansion_aborted_names_query():
    err = ExpansionAborted("q7")
    assert err.query_id == "q7"
    assert "q7" in str(err)
