"""Error types and handlers that render failures as ErrorResponse bodies.

Services raise ``APIError`` subclasses; the middleware turns them (and any
unexpected exception) into the ``{error, message, details}`` body the
storefront shows. ``HTTPException`` keeps FastAPI's ``{"detail": ...}`` shape.
"""

import logging
import time
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.middleware.latency_logging import get_request_id
from src.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for errors that map to a client-visible response.

    Subclasses set ``status_code``, ``error_type`` and ``default_message``;
    callers usually only pass a message and optional field-level details.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "api_error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, details: list[dict[str, Any]] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def headers(self) -> dict[str, str]:
        return {}


class NotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"
    default_message = "Resource not found"


class ValidationError(APIError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_type = "validation_error"
    default_message = "Validation error"


class AuthenticationError(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "authentication_error"
    default_message = "Authentication required"


class ConflictError(APIError):
    """Order is not in a state that allows the requested transition."""

    status_code = status.HTTP_409_CONFLICT
    error_type = "conflict"
    default_message = "Conflict"


class PaymentError(APIError):
    """Stripe rejected or failed a request."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "payment_error"
    default_message = "Payment provider error"


class RateLimitError(APIError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_type = "rate_limit_exceeded"
    default_message = "Rate limit exceeded"

    def __init__(
        self,
        message: str | None = None,
        retry_after: int = 60,
        limit: int | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after = retry_after
        self.limit = limit

    def headers(self) -> dict[str, str]:
        headers = {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(time.time()) + self.retry_after),
        }
        if self.limit is not None:
            headers["X-RateLimit-Limit"] = str(self.limit)
        return headers


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a JSON response carrying an ErrorResponse body."""
    body = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed request bodies in the same shape as service-side validation."""
    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "value_error")}
        for error in exc.errors()
    ]
    logger.info("Rejected %s %s: %d invalid field(s)", request.method, request.url.path, len(details))
    return create_error_response(
        error_type=ValidationError.error_type,
        message="Request body is invalid",
        status_code=ValidationError.status_code,
        details=details,
        request_id=get_request_id(request),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Catch exceptions escaping the route handlers and format them.

    APIError and HTTPException are logged at warning level. Anything else is
    logged with its traceback and answered with a generic 500 so internals
    never reach the client.
    """
    request_id = get_request_id(request)

    try:
        return await call_next(request)

    except APIError as e:
        logger.warning(
            "%s on %s %s: %s",
            e.error_type,
            request.method,
            request.url.path,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
            headers=e.headers(),
        )

    except HTTPException as e:
        logger.warning("HTTP %s on %s: %s", e.status_code, request.url.path, e.detail, extra={"request_id": request_id})
        return JSONResponse(status_code=e.status_code, content={"detail": e.detail}, headers=e.headers)

    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, extra={"request_id": request_id})
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )
