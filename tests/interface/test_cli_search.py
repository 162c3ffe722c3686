"""Tests for the prf-search CLI."""

import json

import pytest
from structlog.testing import capture_logs

from prf_engine.interface.cli import search as search_cli

DOCS = [
    {"docno": "d0", "text": "terrier search engine for retrieval research"},
    {"docno": "d1", "text": "terrier is a search engine for retrieval experiments"},
    {"docno": "d2", "text": "fresh pasta with tomato sauce"},
]


@pytest.fixture
def corpus(tmp_path, monkeypatch):  # type: ignore[no-untyped-def]
    monkeypatch.setattr(search_cli, "setup_logging", lambda *a, **k: None)
    monkeypatch.delenv("PRF_CORPUS_PATH", raising=False)
    monkeypatch.delenv("QE_QRELS_PATH", raising=False)
    monkeypatch.setenv("TELEMETRY_ENABLED", "false")
    path = tmp_path / "corpus.json"
    path.write_text(json.dumps(DOCS))
    return str(path)


def test_search_prints_expanded_query_and_hits(corpus, capsys):
    with capture_logs():
        code = search_cli.main(
            ["--corpus", corpus, "--query", "terrier engine"]
            + ["--model", "Bo1", "--fb-docs", "2", "--k", "2"]
        )
    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert out[0].startswith("expanded query: terrier^")
    hits = [line.split("\t") for line in out[1:]]
    assert [h[0] for h in hits] == ["1", "2"]
    assert {h[1] for h in hits} == {"d0", "d1"}


def test_no_qe_prints_first_pass_only(corpus, capsys):
    with capture_logs():
        code = search_cli.main(["--corpus", corpus, "--query", "pasta", "--no-qe"])
    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert len(out) == 1
    assert out[0].split("\t")[1] == "d2"


def test_unknown_model_warns_but_returns_hits(corpus, capsys):
    with capture_logs() as logs:
        code = search_cli.main(["--corpus", corpus, "--query", "terrier", "--model", "Nope"])
    out = capsys.readouterr().out
    assert code == 0
    assert "expanded query" not in out
    assert "d0" in out
    errors = [e["event"] for e in logs if e["log_level"] == "error"]
    assert errors == ["expansion_model_unavailable"]


def test_missing_corpus_is_an_error(monkeypatch, capsys):
    monkeypatch.setattr(search_cli, "setup_logging", lambda *a, **k: None)
    monkeypatch.delenv("PRF_CORPUS_PATH", raising=False)
    assert search_cli.main(["--query", "terrier"]) == 2
    assert "PRF_CORPUS_PATH" in capsys.readouterr().err


@pytest.mark.parametrize("content", ["{not json", json.dumps(["just a string"])])
def test_malformed_corpus_exits_with_load_error(tmp_path, monkeypatch, capsys, content):
    monkeypatch.setattr(search_cli, "setup_logging", lambda *a, **k: None)
    monkeypatch.delenv("QE_QRELS_PATH", raising=False)
    bad = tmp_path / "bad.json"
    bad.write_text(content)
    assert search_cli.main(["--corpus", str(bad), "--query", "terrier"]) == 2
    assert "ValidationError" in capsys.readouterr().err


def test_empty_query_reports_validation_error(corpus, capsys):
    assert search_cli.main(["--corpus", corpus, "--query", "???"]) == 1
    assert "ValidationError" in capsys.readouterr().err


def test_query_is_required():
    with pytest.raises(SystemExit):
        search_cli.build_parser().parse_args([])


def test_flags_become_expansion_controls(corpus, monkeypatch):
    captured = {}

    class FakeUseCase:
        def execute(self, req):  # type: ignore[no-untyped-def]
            captured["req"] = req
            from prf_engine.domain.errors import ValidationError
            from prf_engine.domain.types import Result

            return Result.failure(ValidationError("stop"))

    monkeypatch.setattr(search_cli, "build_search_use_case", lambda *a, **k: FakeUseCase())
    search_cli.main(
        [
            "--corpus", corpus, "--query", "terrier", "--qid", "401",
            "--model", "KL", "--fb-docs", "5", "--fb-terms", "0", "--no-2nd-pass",
        ]
    )
    req = captured["req"]
    assert req.query_id == "401"
    assert req.expand is True
    assert req.controls == {
        "qemodel": "KL",
        "qe_fb_docs": "5",
        "qe_fb_terms": "0",
        "qe_no_2nd_matching": "true",
    }
