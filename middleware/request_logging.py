"""
Request context middleware.

Every request gets a request id (``req_`` + 12 hex chars, or a well-formed
incoming ``X-Request-ID``). The id is bound into structlog contextvars so any
log line emitted while handling the request carries it, is exposed as
``request.state.request_id`` and is echoed in the ``X-Request-ID`` response
header.
"""

from __future__ import annotations

import re
import time
import uuid

import structlog
from fastapi import FastAPI, Request

from shared.logging import get_logger

REQUEST_ID_HEADER = "X-Request-ID"

_INCOMING_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

log = get_logger("jobops.request")


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return f"req_{uuid.uuid4().hex[:12]}"


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _INCOMING_REQUEST_ID_RE.match(incoming):
        return incoming
    return generate_request_id()


def log_request_end(
    request: Request, status_code: int, duration_ms: int, is_production: bool
) -> None:
    # Successful redirects are high-frequency; in production only /api/ and
    # failures are logged here.
    if is_production and status_code < 400 and not request.url.path.startswith("/api/"):
        return

    if status_code >= 500:
        log_fn = log.error
    elif status_code >= 400:
        log_fn = log.warning
    else:
        log_fn = log.info

    log_fn(
        "request_completed",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        duration_ms=duration_ms,
    )


def setup_request_logging_middleware(app: FastAPI, *, is_production: bool = False) -> None:
    """Register the request-id / request-logging middleware on *app*."""

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        start = time.perf_counter()
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
            duration_ms = int((time.perf_counter() - start) * 1000)
            log_request_end(request, response.status_code, duration_ms, is_production)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()
