"""OpenAPI metadata and customization utilities.

Enriches the generated schema with:
- Tags metadata
- Two security schemes: the anonymous client key (``apikey`` header) and
  user bearer tokens
- Per-operation security matching the dependencies each route uses
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Chat", "description": "Chat-completions proxy and customer-service assistant."},
    {"name": "Images", "description": "Image relay and image generation streaming."},
    {"name": "Rate limit", "description": "Per-user fixed-window budget checks."},
    {"name": "Prompts", "description": "Prompt extraction from assistant replies."},
    {"name": "Scraping", "description": "Product context around competitor images."},
    {"name": "Uploads", "description": "Competitor image library uploads."},
    {"name": "Admin", "description": "User management for administrators."},
    {"name": "Health", "description": "Liveness checks."},
]

# Path suffix → security requirement; first match wins
SECURITY_BY_PATH: tuple[tuple[str, list[dict[str, list]]], ...] = (
    ("/health", []),
    ("/images/proxy", []),
    ("/prompts/extract", []),
    ("/rate-limit/check", [{"BearerAuth": []}]),
    ("/competitor-images", [{"BearerAuth": []}]),
    ("/admin/users/password", [{"BearerAuth": []}]),
)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "apikey",
                "description": "Client key of the web app or browser extension.",
            },
        )
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Access token of the signed-in user.",
            },
        )

        # Client key is the default; specific paths override below
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for suffix, security in SECURITY_BY_PATH:
                if path.endswith(suffix):
                    for method_obj in methods.values():
                        if isinstance(method_obj, dict):
                            method_obj["security"] = security
                    break

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
