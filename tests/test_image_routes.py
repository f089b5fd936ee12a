"""Tests for the image relay and the image generation stream.

Outbound HTTP goes through ``httpx.MockTransport`` injected with
``get_http_transport``.
"""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_http_transport
from app.core.config import ImageGenerationSettings, settings
from app.core.errors import ValidationAppError
from app.main import app
from app.schemas.images import ImageGenerationRequest, SequentialImageOptions
from app.services.image_generation_service import (
    build_generation_payload,
    upstream_error_from_text,
)
from app.services.image_proxy_service import parse_target_url
from app.utils.image_proxy import proxy_image_url, proxy_image_urls

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def use_transport(handler) -> list[httpx.Request]:
    """Route outbound requests to ``handler`` and record them."""
    seen: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    app.dependency_overrides[get_http_transport] = lambda: httpx.MockTransport(recording_handler)
    return seen


class TestImageProxyUrl:
    def test_http_urls_are_rewritten(self) -> None:
        proxied = proxy_image_url("https://img.example.com/a b.png?x=1", "https://edge.example.com/")

        assert proxied == (
            "https://edge.example.com/v1/images/proxy"
            "?url=https%3A%2F%2Fimg.example.com%2Fa%20b.png%3Fx%3D1"
        )

    @pytest.mark.parametrize("url", ["blob:https://app/1234", "data:image/png;base64,AAAA", ""])
    def test_local_urls_pass_through(self, url: str) -> None:
        assert proxy_image_url(url, "https://edge.example.com") == url

    def test_no_base_url_passes_through(self) -> None:
        assert proxy_image_url("https://img.example.com/a.png", None) == "https://img.example.com/a.png"

    def test_list_helper(self) -> None:
        assert proxy_image_urls(["data:x", "/relative.png"], "https://edge") == [
            "data:x",
            "/relative.png",
        ]


class TestParseTargetUrl:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing(self, raw) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_target_url(raw)
        assert exc_info.value.code == "missing_url"

    @pytest.mark.parametrize("raw", ["not a url", "ftp://example.com/a.png", "/relative.png"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_target_url(raw)
        assert exc_info.value.code == "invalid_url"


class TestImageProxyRoute:
    def test_relays_bytes_with_cache_headers(self, client: TestClient) -> None:
        seen = use_transport(
            lambda request: httpx.Response(
                200, content=PNG_BYTES, headers={"Content-Type": "image/png"}
            )
        )

        response = client.get(
            "/v1/images/proxy",
            params={"url": "https://img.alicdn.com/bao/uploaded/i1/bottle.png"},
            headers={"Origin": "https://studio.example.com"},
        )

        assert response.status_code == 200
        assert response.content == PNG_BYTES
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "public, max-age=86400, immutable"
        assert response.headers["access-control-allow-origin"] == "*"

        outbound = seen[0]
        assert outbound.headers["Referer"] == "https://img.alicdn.com"
        assert outbound.headers["User-Agent"].startswith("Mozilla/5.0")
        assert outbound.headers["Accept"].startswith("image/webp")

    @pytest.mark.parametrize(
        ("target", "referer"),
        [
            ("http://[::1]:8080/a.png", "http://[::1]:8080"),
            ("https://cdn.example.com:8443/a.png", "https://cdn.example.com:8443"),
            ("https://cdn.example.com:443/a.png", "https://cdn.example.com"),
        ],
    )
    def test_referer_is_target_origin(self, client: TestClient, target: str, referer: str) -> None:
        seen = use_transport(lambda request: httpx.Response(200, content=PNG_BYTES))

        response = client.get("/v1/images/proxy", params={"url": target})

        assert response.status_code == 200
        assert seen[0].headers["Referer"] == referer

    def test_defaults_content_type_to_jpeg(self, client: TestClient) -> None:
        use_transport(lambda request: httpx.Response(200, content=b"\xff\xd8\xff\xe0"))

        response = client.get("/v1/images/proxy", params={"url": "https://img.example.com/a"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"

    def test_missing_url_returns_400(self, client: TestClient) -> None:
        use_transport(lambda request: httpx.Response(200))

        response = client.get("/v1/images/proxy")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Missing 'url' parameter"

    def test_upstream_status_is_mirrored(self, client: TestClient) -> None:
        use_transport(lambda request: httpx.Response(404))

        response = client.get("/v1/images/proxy", params={"url": "https://img.example.com/gone"})

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Failed to fetch image: 404"

    def test_network_failure_returns_502(self, client: TestClient) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        use_transport(fail)

        response = client.get("/v1/images/proxy", params={"url": "https://img.example.com/a"})

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "image_fetch_failed"


class TestGenerationPayload:
    def test_defaults(self) -> None:
        payload = build_generation_payload(
            ImageGenerationRequest(prompt="a frosted glass bottle"),
            ImageGenerationSettings(),
        )

        assert payload == {
            "model": "doubao-seedream-4-0-250828",
            "prompt": "a frosted glass bottle",
            "response_format": "url",
            "size": "2K",
            "stream": True,
            "watermark": True,
        }

    def test_sequential_generation_defaults_max_images(self) -> None:
        payload = build_generation_payload(
            ImageGenerationRequest(
                prompt="bottle set",
                image=["https://cdn.example.com/ref.png"],
                size="2048x2048",
                sequential_image_generation="auto",
            ),
            ImageGenerationSettings(),
        )

        assert payload["image"] == ["https://cdn.example.com/ref.png"]
        assert payload["size"] == "2048x2048"
        assert payload["sequential_image_generation"] == "auto"
        assert payload["sequential_image_generation_options"] == {"max_images": 3}

    def test_explicit_options_are_kept(self) -> None:
        payload = build_generation_payload(
            ImageGenerationRequest(
                prompt="bottle set",
                sequential_image_generation="auto",
                sequential_image_generation_options=SequentialImageOptions(max_images=5),
            ),
            ImageGenerationSettings(),
        )

        assert payload["sequential_image_generation_options"] == {"max_images": 5}

    def test_error_text_is_truncated(self) -> None:
        error = upstream_error_from_text(500, "x" * 500)

        assert error.message == "API error: 500 - " + "x" * 200
        assert error.details["http_status"] == 500

    def test_error_json_message_is_used(self) -> None:
        error = upstream_error_from_text(
            400, json.dumps({"error": {"code": "InvalidParameter", "message": "size invalid"}})
        )

        assert error.message == "size invalid"


class TestGenerationRoute:
    @pytest.fixture(autouse=True)
    def _configure_key(self, monkeypatch) -> None:
        monkeypatch.setattr(settings.image, "api_key", "seedream-key")

    def test_streams_only_data_lines(self, client: TestClient, valid_api_key_headers) -> None:
        upstream_body = (
            b"event: image_generation.partial_succeeded\n"
            b'data: {"type":"image_generation.partial_succeeded","url":"https://x/1.png"}\n'
            b"\n"
            b": keep-alive\n"
            b'data: {"type":"image_generation.completed"}\n'
            b"\n"
            b"data: [DONE]\n"
        )
        seen = use_transport(
            lambda request: httpx.Response(
                200, content=upstream_body, headers={"Content-Type": "text/event-stream"}
            )
        )

        response = client.post(
            "/v1/images/generations",
            json={"prompt": "a frosted glass bottle", "size": "1K"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.text == (
            'data: {"type":"image_generation.partial_succeeded","url":"https://x/1.png"}\n'
            'data: {"type":"image_generation.completed"}\n'
            "data: [DONE]\n"
        )

        outbound = seen[0]
        assert str(outbound.url) == "https://ark.cn-beijing.volces.com/api/v3/images/generations"
        assert outbound.headers["Authorization"] == "Bearer seedream-key"
        sent = json.loads(outbound.content)
        assert sent["stream"] is True
        assert sent["size"] == "1K"

    def test_upstream_error_is_json(self, client: TestClient, valid_api_key_headers) -> None:
        use_transport(
            lambda request: httpx.Response(
                401, json={"error": {"message": "The API key is invalid"}}
            )
        )

        response = client.post(
            "/v1/images/generations",
            json={"prompt": "bottle"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "The API key is invalid"

    def test_missing_prompt(self, client: TestClient, valid_api_key_headers) -> None:
        seen = use_transport(lambda request: httpx.Response(200))

        response = client.post("/v1/images/generations", json={}, headers=valid_api_key_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "missing_prompt"
        assert seen == []

    def test_missing_provider_key(
        self, client: TestClient, valid_api_key_headers, monkeypatch
    ) -> None:
        monkeypatch.setattr(settings.image, "api_key", None)
        use_transport(lambda request: httpx.Response(200))

        response = client.post(
            "/v1/images/generations",
            json={"prompt": "bottle"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "image_api_missing_key"

    def test_requires_client_key(self, client: TestClient) -> None:
        response = client.post("/v1/images/generations", json={"prompt": "bottle"})

        assert response.status_code == 401
