"""Request body size limiting middleware."""

import logging
from typing import Callable

from fastapi import Request, Response, status

from src.api.middleware.error_handler import create_error_response
from src.api.middleware.latency_logging import get_request_id
from src.core.config import get_settings

logger = logging.getLogger(__name__)


def max_body_size_for(path: str) -> int:
    """Largest body accepted for a path.

    Reviews, worker registrations and ticket listings carry images;
    everything else is small JSON.
    """
    settings = get_settings()
    if path.startswith("/api/reviews"):
        # Form fields plus the allowed number of full-size images
        return settings.review_max_images * settings.review_max_image_bytes + 1024 * 1024
    if path.startswith(("/api/worker-form", "/api/tickets/")):
        return settings.listing_max_image_bytes + 1024 * 1024
    return settings.max_request_body_size


async def request_size_limit_middleware(
    request: Request,
    call_next: Callable[[Request], Response],
) -> Response:
    """Reject requests whose declared Content-Length is over the limit.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the successful response or 413 error.
    """
    max_size = max_body_size_for(request.url.path)

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        length = int(content_length)
        if length > max_size:
            logger.warning(
                "Request body too large on %s: %d bytes (max: %d)",
                request.url.path,
                length,
                max_size,
            )
            return create_error_response(
                error_type="request_too_large",
                message=f"Request body exceeds maximum size of {max_size} bytes",
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                request_id=get_request_id(request),
            )

    return await call_next(request)
