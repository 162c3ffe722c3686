"""Tests for the FastAPI search endpoint."""

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from prf_engine.config.composition import Container  # noqa: E402
from prf_engine.config.settings import AppSettings  # noqa: E402
from prf_engine.infrastructure.index.in_memory_index import InMemoryIndex  # noqa: E402
from prf_engine.interface.http import api  # noqa: E402

DOCS = [
    ("d0", "terrier search engine for retrieval research"),
    ("d1", "terrier is a search engine for retrieval experiments"),
    ("d2", "fresh pasta with tomato sauce"),
]


@pytest.fixture
def client(monkeypatch):  # type: ignore[no-untyped-def]
    settings = AppSettings(qe_model="Bo1", qrels_path="", telemetry_enabled=False)
    monkeypatch.setattr(api, "container", Container(settings, index=InMemoryIndex.build(DOCS)))
    return TestClient(api.app)


def test_search_returns_hits_and_expanded_query(client):
    resp = client.post("/v1/search", json={"query": "terrier engine", "top_k": 2, "fb_docs": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert {h["docno"] for h in body["hits"]} == {"d0", "d1"}
    assert body["expanded_query"].startswith("terrier^")


def test_search_without_expansion(client):
    body = client.post("/v1/search", json={"query": "pasta", "expand": False}).json()
    assert body["status"] == "success"
    assert body["hits"][0]["docno"] == "d2"
    assert body["expanded_query"] is None


def test_use_case_failure_is_error_payload(client):
    body = client.post("/v1/search", json={"query": "???"}).json()
    assert body["status"] == "error"
    assert "indexable" in body["error"]


def test_invalid_request_rejected(client):
    assert client.post("/v1/search", json={"query": "x", "top_k": 0}).status_code == 422
    assert client.post("/v1/search", json={"query": "x", "fb_docs": -1}).status_code == 422


def test_uninitialised_service_returns_503(monkeypatch):
    monkeypatch.setattr(api, "container", None)
    resp = TestClient(api.app).post("/v1/search", json={"query": "x"})
    assert resp.status_code == 503


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "healthy", "service": "prf-engine"}
