"""Async HTTP client for the marketplace API used by the order submission flow."""

import logging
from typing import Any

import httpx

from src.client.errors import CheckoutSessionError, NetworkError, PersistenceError, SubmissionError
from src.core.config import get_settings
from src.schemas.checkout import CheckoutSessionCreate
from src.schemas.order import OrderCreate

logger = logging.getLogger(__name__)


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_message(body: dict[str, Any]) -> str | None:
    """Pull the human-readable message out of an error body."""
    message = body.get("message") or body.get("error") or body.get("detail")
    return message if isinstance(message, str) else None


class MarketplaceClient:
    """Thin async wrapper over the order, checkout and promo endpoints.

    Transport failures become ``NetworkError``. Error responses become the
    ``SubmissionError`` subclass passed by the caller, carrying the
    server's message.
    """

    def __init__(
        self,
        base_url: str,
        *,
        order_timeout: float = 10.0,
        checkout_timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.order_timeout = order_timeout
        self.checkout_timeout = checkout_timeout
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport)

    @classmethod
    def from_settings(cls, transport: httpx.AsyncBaseTransport | None = None) -> "MarketplaceClient":
        settings = get_settings()
        return cls(
            settings.api_base_url,
            order_timeout=settings.order_request_timeout,
            checkout_timeout=settings.checkout_request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        error_cls: type[SubmissionError],
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, json=json, timeout=timeout)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out after %.1fs", method, path, timeout)
            raise NetworkError(timed_out=True) from e
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, str(e))
            raise NetworkError() from e

        if response.is_error:
            body = _error_body(response)
            message = _error_message(body)
            logger.warning("%s %s returned %d: %s", method, path, response.status_code, message)
            if issubclass(error_cls, PersistenceError):
                raise PersistenceError(message, status_code=response.status_code, details=body.get("details"))
            raise error_cls(message, status_code=response.status_code)

        return response

    def _json_body(self, response: httpx.Response, error_cls: type[SubmissionError]) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise error_cls("The server sent an unreadable response.") from e
        if not isinstance(body, dict):
            raise error_cls("The server sent an unexpected response.")
        return body

    async def create_order(self, order: OrderCreate) -> dict[str, Any]:
        """POST /api/orders. Returns the stored order (id under ``_id``).

        Raises:
            NetworkError: If the server cannot be reached.
            PersistenceError: If the server rejects the order.
        """
        response = await self._request(
            "POST",
            "/api/orders",
            json=order.model_dump(mode="json", by_alias=True, exclude_none=True),
            timeout=self.order_timeout,
            error_cls=PersistenceError,
        )
        return self._json_body(response, PersistenceError)

    async def create_checkout_session(self, session: CheckoutSessionCreate) -> dict[str, Any]:
        """POST /api/create-checkout-session. Returns ``{id, url}``.

        Raises:
            NetworkError: If the server cannot be reached.
            CheckoutSessionError: If the server rejects the request.
        """
        response = await self._request(
            "POST",
            "/api/create-checkout-session",
            json=session.model_dump(mode="json", exclude_none=True),
            timeout=self.checkout_timeout,
            error_cls=CheckoutSessionError,
        )
        return self._json_body(response, CheckoutSessionError)

    async def abandon_order(self, order_id: str) -> dict[str, Any]:
        """POST /api/orders/{id}/abandon."""
        response = await self._request(
            "POST",
            f"/api/orders/{order_id}/abandon",
            timeout=self.order_timeout,
            error_cls=PersistenceError,
        )
        return self._json_body(response, PersistenceError)

    async def get_order(self, order_id: str) -> dict[str, Any]:
        response = await self._request(
            "GET",
            f"/api/orders/{order_id}",
            timeout=self.order_timeout,
            error_cls=PersistenceError,
        )
        return self._json_body(response, PersistenceError)

    async def lookup_promo(self, code: str) -> dict[str, Any] | None:
        """GET /api/promo-codes/{code}. Returns None for unknown codes."""
        try:
            response = await self._client.get(f"/api/promo-codes/{code}", timeout=self.order_timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(timed_out=True) from e
        except httpx.RequestError as e:
            raise NetworkError() from e

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.is_error:
            raise SubmissionError(_error_message(_error_body(response)), status_code=response.status_code)
        return self._json_body(response, SubmissionError)
