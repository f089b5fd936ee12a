"""HTTP middleware for request ID propagation and access logging.

Every request/response pair carries a correlation id:
- An incoming ``X-Request-ID`` (header name configurable) is reused, otherwise
  a UUID4 is generated
- The id lives in a contextvar for the duration of the request so every log
  line emitted by services and adapters is correlated
- The id and the total duration are echoed back in response headers, on
  unexpected 500s as well

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Assign a request id, time the request and log its completion.

    Unhandled exceptions are turned into the generic 500 envelope here, while
    the request id is still bound, instead of in Starlette's outer error
    middleware.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response with ``X-Request-ID`` and ``X-Request-Duration-ms`` headers.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            response = await general_exception_handler(request, exc)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request_completed",
            extra={
                "method": request.method,
                "route": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
