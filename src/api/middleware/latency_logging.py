"""Per-request access logging with a request id and latency."""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

# Checkout calls out to Stripe and is expected to be slower
SLOW_PATH_PREFIXES = ("/api/create-checkout-session",)

QUIET_PATHS = ("/health", "/health/ready")


def get_request_id(request: Request) -> str | None:
    """Request id assigned by the logging middleware, else the inbound header."""
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)


def _level_for(path: str, status_code: int, latency_ms: float) -> int:
    if path in QUIET_PATHS:
        return logging.DEBUG
    if status_code >= 500 or latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
        return logging.ERROR

    slow_ms = SLOW_REQUEST_THRESHOLD_MS * (2 if path.startswith(SLOW_PATH_PREFIXES) else 1)
    if status_code >= 400 or latency_ms > slow_ms:
        return logging.WARNING
    return logging.INFO


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Tag the request with an id, time it, and log one access line.

    An inbound ``X-Request-ID`` is reused so ids line up with the load
    balancer's logs; otherwise a fresh one is generated. The id is echoed
    back on the response.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    start = time.perf_counter()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.log(
            _level_for(request.url.path, status_code, latency_ms),
            "%s %s - %d - %.2fms",
            request.method,
            request.url.path,
            status_code,
            latency_ms,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "latency_ms": round(latency_ms, 2),
            },
        )
