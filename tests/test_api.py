"""End-to-end tests for the HTTP endpoints."""
from __future__ import annotations

import pytest

from lawton.errors import MethodNotAllowedError, UpstreamServiceError


def _ingest(client, headers, **body):
    payload = {"path": "/a", "text": "short text", "sharepoint_url": "u"}
    payload.update(body)
    return client.post("/api/index", json=payload, headers=headers)


def test_healthcheck(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.text == "ok"


def test_ingest_returns_doc_id_and_count(client, auth_headers):
    response = _ingest(client, auth_headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["chunks_inserted"] == 1
    assert payload["doc_id"]


def test_repeated_ingest_keeps_doc_id_and_adds_chunks(client, auth_headers, store):
    first = _ingest(client, auth_headers).json()
    second = _ingest(client, auth_headers).json()

    assert first["doc_id"] == second["doc_id"]
    assert second["chunks_inserted"] == 1
    assert store.count_chunks(first["doc_id"]) == 2


@pytest.mark.parametrize("headers", [{}, {"x-lawton-service-key": "wrong"}])
def test_unauthorised_ingest_is_rejected_without_writes(client, store, headers):
    response = _ingest(client, headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert store.count_chunks() == 0
    assert store.get_document("/a") is None


def test_ingest_rejected_when_no_secret_configured(client, auth_headers):
    from lawton.config import Settings, get_settings
    from lawton.main import app

    app.dependency_overrides[get_settings] = lambda: Settings(service_key="")

    assert _ingest(client, auth_headers).status_code == 401


@pytest.mark.parametrize("missing", ["text", "sharepoint_url", "path"])
def test_ingest_requires_fields(client, auth_headers, missing):
    response = _ingest(client, auth_headers, **{missing: None})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: text, sharepoint_url, path"}


def test_ingest_without_body_is_a_validation_error(client, auth_headers):
    response = client.post("/api/index", headers=auth_headers)

    assert response.status_code == 400


@pytest.mark.parametrize("path", ["/api/index", "/api/retrieve"])
def test_only_post_is_allowed(client, path):
    response = client.get(path)

    assert response.status_code == 405
    assert response.headers["allow"] == "POST"
    assert response.json() == {"error": "Method not allowed"}


def test_method_not_allowed_error_keeps_allow_header(client, monkeypatch, service):
    def _reject(query, filters, limit):
        raise MethodNotAllowedError(allow="POST")

    monkeypatch.setattr(service, "retrieve", _reject)

    response = client.post("/api/retrieve", json={"query": "past"})

    assert response.status_code == 405
    assert response.headers["allow"] == "POST"
    assert response.json() == {"error": "Method not allowed"}


def test_retrieve_ranks_and_strips_embeddings(client, auth_headers):
    _ingest(client, auth_headers, path="/past", text="past tense past tense", topic="grammar")
    _ingest(client, auth_headers, path="/future", text="future future tense", topic="grammar")
    _ingest(client, auth_headers, path="/sounds", text="pronunciation drills", topic="phonics")

    response = client.post("/api/retrieve", json={"query": "past tense"})

    assert response.status_code == 200
    results = response.json()["results"]
    assert len(results) == 3
    assert results[0]["text"] == "past tense past tense"
    scores = [item["score"] for item in results]
    assert scores == sorted(scores, reverse=True)
    for item in results:
        assert "embedding" not in item
        assert {"chunk_id", "doc_id", "text", "topic", "cefr", "section", "order_in_doc", "sharepoint_url"} <= item.keys()


def test_retrieve_applies_filters(client, auth_headers):
    _ingest(client, auth_headers, path="/g", text="past tense", topic="grammar", cefr="A1")
    _ingest(client, auth_headers, path="/h", text="past tense", topic="grammar", cefr="B2")

    response = client.post(
        "/api/retrieve",
        json={"query": "past", "filters": {"topic": "grammar", "cefr": "B2"}},
    )

    results = response.json()["results"]
    assert [(item["topic"], item["cefr"]) for item in results] == [("grammar", "B2")]


def test_retrieve_clamps_limit(client, auth_headers):
    for index in range(3):
        _ingest(client, auth_headers, path=f"/doc-{index}", text="vocabulary list")

    assert len(client.post("/api/retrieve", json={"query": "vocabulary", "limit": 0}).json()["results"]) == 1
    assert len(client.post("/api/retrieve", json={"query": "vocabulary", "limit": 2}).json()["results"]) == 2
    assert len(client.post("/api/retrieve", json={"query": "vocabulary", "limit": 999}).json()["results"]) == 3


def test_retrieve_requires_query(client):
    response = client.post("/api/retrieve", json={"filters": {"topic": "grammar"}})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing 'query'"}


def test_retrieve_with_empty_store_returns_no_results(client):
    response = client.post("/api/retrieve", json={"query": "anything"})

    assert response.status_code == 200
    assert response.json() == {"results": []}


def test_upstream_failure_becomes_500(client, monkeypatch, vocabulary_embedder):
    def _fail(texts):
        raise UpstreamServiceError('OpenAI error: {"error": "bad key"}', body='{"error": "bad key"}')

    monkeypatch.setattr(vocabulary_embedder, "_embed_batch", _fail)

    response = client.post("/api/retrieve", json={"query": "past"})

    assert response.status_code == 500
    assert response.json() == {"error": 'OpenAI error: {"error": "bad key"}'}


def test_unexpected_failure_becomes_500(client, auth_headers, monkeypatch, store):
    def _explode(chunk):
        raise KeyError("boom")

    monkeypatch.setattr(store, "insert_chunk", _explode)

    response = _ingest(client, auth_headers)

    assert response.status_code == 500
    assert "Failed to insert chunk" in response.json()["error"]


def test_unhandled_exception_is_reported_as_error_body(client, auth_headers, monkeypatch, service):
    def _crash(request):
        raise RuntimeError("kaput")

    monkeypatch.setattr(service, "ingest", _crash)

    response = _ingest(client, auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "kaput"}


def test_malformed_limit_is_a_validation_error(client):
    response = client.post("/api/retrieve", json={"query": "past", "limit": "many"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request")
