from __future__ import annotations

from fastapi.testclient import TestClient

from app.api.dependencies import get_chat_client
from app.main import app


client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_error_envelope_carries_request_id():
    incoming_id = "trace-me-456"
    resp = client.get("/v1/images/proxy", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 400
    assert resp.json()["error"]["request_id"] == incoming_id
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_unexpected_error_keeps_request_id_and_cors_headers():
    def broken_chat_client():
        raise RuntimeError("connection pool exhausted")

    app.dependency_overrides[get_chat_client] = broken_chat_client
    lenient_client = TestClient(app, raise_server_exceptions=False)

    resp = lenient_client.post(
        "/v1/chat/completions",
        json={"model": "gpt-4o", "messages": [{"role": "user", "content": "hi"}]},
        headers={
            "X-Request-ID": "rid-1",
            "apikey": "test-api-key-123",
            "Origin": "https://studio.example.com",
        },
    )

    assert resp.status_code == 500
    error = resp.json()["error"]
    assert error["code"] == "internal_server_error"
    assert error["request_id"] == "rid-1"
    assert "connection pool" not in error["message"]
    assert resp.headers.get("X-Request-ID") == "rid-1"
    assert resp.headers.get("access-control-allow-origin") == "*"
