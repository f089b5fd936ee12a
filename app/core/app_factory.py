from __future__ import annotations

"""Application factory for the FastAPI app.

Builds the app in one place (metadata, middleware, handlers, routers) so
tests can create isolated instances.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import (
    admin_router,
    chat_router,
    health_router,
    images_router,
    prompts_router,
    rate_limit_router,
    scraping_router,
    uploads_router,
)
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = [
    "Content-Type",
    "Authorization",
    "X-Client-Info",
    "Apikey",
    "X-API-Key",
    "X-Request-ID",
]


def _cors_origins() -> list[str]:
    return [
        origin.strip()
        for origin in settings.app.cors_allow_origins.split(",")
        if origin.strip()
    ] or ["*"]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Bottle Studio Edge API",
        description=(
            "Server-side functions for the bottle design studio: chat and image "
            "generation proxies, an image relay, per-user rate limit checks, "
            "competitor image uploads from the browser extension, prompt "
            "extraction and admin user management."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    # Middleware: CORS is added last so it wraps everything, including errors
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=[settings.log.request_id_header, "Retry-After"],
    )

    setup_exception_handlers(app)

    for router in (
        chat_router,
        images_router,
        rate_limit_router,
        prompts_router,
        scraping_router,
        uploads_router,
        admin_router,
    ):
        app.include_router(router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
