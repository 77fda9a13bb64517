"""Order submission flow: validate, persist the order, open a checkout session.

The flow is a two-step saga. The order is stored first, then a checkout
session is requested for it. If anything after the order write fails, the
server is asked to mark the order abandoned so it does not stay pending.

The cart passed in is never modified; after any failure the caller still
holds the same cart and can retry.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol
from urllib.parse import parse_qs, urlsplit

from src.client.api_client import MarketplaceClient
from src.client.errors import (
    CheckoutSessionError,
    NetworkError,
    PersistenceError,
    RedirectError,
    SubmissionError,
    ValidationError,
)
from src.core.config import get_settings
from src.schemas.cart import CartState, CartTotals
from src.schemas.checkout import CheckoutLineItem, CheckoutSessionCreate
from src.schemas.order import EMAIL_PATTERN, PHONE_PATTERN, ContactInfo, OrderCreate
from src.services import cart_service
from src.services.cart_service import FeeSchedule
from src.services.promo_service import DiscountRule, StaticPromoPolicy

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    """Where a submission attempt currently is."""

    IDLE = "idle"
    VALIDATING = "validating"
    PERSISTING_ORDER = "persisting_order"
    CREATING_CHECKOUT_SESSION = "creating_checkout_session"
    REDIRECTING_TO_PAYMENT = "redirecting_to_payment"
    SUCCESS = "success"
    FAILED = "failed"


IN_FLIGHT_STATES = frozenset(
    {
        SubmissionState.VALIDATING,
        SubmissionState.PERSISTING_ORDER,
        SubmissionState.CREATING_CHECKOUT_SESSION,
        SubmissionState.REDIRECTING_TO_PAYMENT,
    }
)


@dataclass
class BookingDetails:
    """What the customer filled in on the booking form."""

    location: str = ""
    date: str = ""
    time_slots: tuple[str, ...] = ()
    full_name: str = ""
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a successful submission: where to send the customer."""

    order_id: str
    session_id: str
    redirect_url: str
    submission_id: str


def order_id_from_return_url(url: str) -> str | None:
    """Read ``order_id`` from a payment-success redirect URL."""
    values = parse_qs(urlsplit(url).query).get("order_id")
    return values[0] if values else None


class CheckoutRedirector(Protocol):
    """Hands the customer over to the payment provider."""

    def redirect(self, session_id: str, url: str | None) -> str:
        """Return the URL the customer is sent to.

        Raises:
            RedirectError: If the provider cannot open the session.
        """
        ...


class HostedCheckoutRedirector:
    """Redirects to the provider-hosted checkout page returned with the session."""

    def redirect(self, session_id: str, url: str | None) -> str:
        if not url:
            raise RedirectError(f"The payment provider did not return a checkout page for session {session_id}.")
        return url


class RemotePromoPolicy:
    """Applies promo codes using the server's offer table."""

    def __init__(self, api: MarketplaceClient) -> None:
        self.api = api

    async def fetch_rule(self, code: str) -> DiscountRule | None:
        if not code:
            return None
        offer = await self.api.lookup_promo(code)
        if offer is None:
            return None
        return DiscountRule(code=offer["code"], discount_percentage=Decimal(str(offer["discount_percentage"])))

    async def apply(self, state: CartState, code: str) -> CartState:
        """Apply ``code`` to the active category as the server prices it."""
        rule = await self.fetch_rule(code)
        policy = StaticPromoPolicy(offers=(rule,) if rule else ())
        return cart_service.apply_promo_code(state, code, policy)


class OrderSubmissionFlow:
    """Drives one booking from the cart to the payment page.

    State moves IDLE -> VALIDATING -> PERSISTING_ORDER ->
    CREATING_CHECKOUT_SESSION -> REDIRECTING_TO_PAYMENT -> SUCCESS. Any
    failure passes through FAILED back to IDLE and is raised to the caller
    as a ``SubmissionError``.
    """

    def __init__(
        self,
        api: MarketplaceClient,
        *,
        fees: FeeSchedule | None = None,
        redirector: CheckoutRedirector | None = None,
        frontend_url: str | None = None,
    ) -> None:
        self.api = api
        self.fees = fees or FeeSchedule.from_settings()
        self.redirector = redirector or HostedCheckoutRedirector()
        self.frontend_url = (frontend_url or get_settings().frontend_url).rstrip("/")

        self.history: list[SubmissionState] = [SubmissionState.IDLE]
        self._attempt = 0
        # (payload fingerprint, submission id) kept after a network failure
        # while storing the order, so a retry cannot create a second order
        self._unconfirmed_submission: tuple[str, str] | None = None

    @property
    def state(self) -> SubmissionState:
        return self.history[-1]

    def _transition(self, state: SubmissionState) -> None:
        logger.debug("Submission %s -> %s", self.state.value, state.value)
        self.history.append(state)

    def _fail(self) -> None:
        self._transition(SubmissionState.FAILED)
        self._transition(SubmissionState.IDLE)

    def _is_stale(self, attempt: int) -> bool:
        return attempt != self._attempt

    def validate(self, cart: CartState, details: BookingDetails) -> None:
        """Check the booking form before anything is sent.

        Raises:
            ValidationError: With one message per offending field.
        """
        errors: dict[str, str] = {}

        if not cart.active_items:
            errors["items"] = "Your cart is empty."
        if not details.location.strip():
            errors["location"] = "Please enter a location."
        if not details.date.strip():
            errors["date"] = "Please select a date."

        if cart.active_category == "service":
            if not details.time_slots:
                errors["time_slots"] = "Please select at least one time slot."
            if not details.full_name.strip():
                errors["full_name"] = "Please enter your full name."
            if not re.match(PHONE_PATTERN, details.phone):
                errors["phone"] = "Please enter a valid 10-digit mobile number."
            if not re.match(EMAIL_PATTERN, details.email):
                errors["email"] = "Please enter a valid email address."

        if errors:
            raise ValidationError(errors)

    def build_price_list(self, cart: CartState, totals: CartTotals) -> list[CheckoutLineItem]:
        """Itemized charges for the payment provider, in minor units.

        One line per cart item, then the delivery fee, platform fee and tax
        when they are above zero.
        """
        items = cart_service.snapshot_items(cart, cart.active_category)
        return cart_service.checkout_line_items(items, totals, self.fees.currency)

    def build_order_payload(
        self,
        cart: CartState,
        details: BookingDetails,
        totals: CartTotals,
        submission_id: str | None = None,
    ) -> OrderCreate:
        """Map the cart snapshot and form into an order."""
        category = cart.active_category
        is_service = category == "service"

        contact_info = None
        if is_service:
            contact_info = ContactInfo(
                full_name=details.full_name.strip(),
                phone=details.phone,
                email=details.email,
            )

        return OrderCreate(
            booking_type=category,
            contact_info=contact_info,
            items=cart_service.snapshot_items(cart, category),
            location=details.location.strip(),
            date=details.date.strip(),
            time_slots=list(details.time_slots) if is_service else [],
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            platform_fee=totals.platform_fee,
            discount=totals.discount,
            tax=totals.tax,
            total=totals.total,
            promo_code=cart.promo_code_for(category) if totals.discount > 0 else "",
            submission_id=submission_id,
        )

    def build_checkout_request(
        self,
        cart: CartState,
        details: BookingDetails,
        totals: CartTotals,
        order_id: str,
    ) -> CheckoutSessionCreate:
        metadata = {
            "delivery_address": details.location.strip(),
            "delivery_date": details.date.strip(),
            "promo_code": (cart.promo_code_for(cart.active_category) if totals.discount > 0 else "") or "None",
            "booking_type": cart.active_category,
        }
        if cart.active_category == "service":
            metadata.update(
                {
                    "time_slots": ", ".join(details.time_slots),
                    "full_name": details.full_name.strip(),
                    "mobile_number": details.phone,
                    "email": details.email,
                }
            )

        return CheckoutSessionCreate(
            line_items=self.build_price_list(cart, totals),
            metadata=metadata,
            order_id=order_id,
            success_url=f"{self.frontend_url}/payment-success?order_id={order_id}",
            cancel_url=f"{self.frontend_url}/cart?order_id={order_id}",
        )

    def _submission_id_for(self, payload: OrderCreate) -> str:
        fingerprint = payload.model_dump_json(exclude={"submission_id"})
        if self._unconfirmed_submission and self._unconfirmed_submission[0] == fingerprint:
            return self._unconfirmed_submission[1]
        return uuid.uuid4().hex

    async def _compensate(self, order_id: str) -> None:
        """Ask the server to abandon an order whose checkout never started."""
        try:
            await self.api.abandon_order(order_id)
            logger.info("Order %s abandoned after failed checkout", order_id)
        except SubmissionError as e:
            # Already abandoned server-side when the provider rejected the session
            logger.warning("Could not abandon order %s: %s", order_id, e.user_message)

    async def submit(self, cart: CartState, details: BookingDetails) -> SubmissionResult | None:
        """Place the order and open the payment page.

        Args:
            cart: Cart to check out (its active category is submitted).
            details: Booking form values.

        Returns:
            SubmissionResult | None: Redirect target, or None if the attempt
            was cancelled while a request was in flight.

        Raises:
            ValidationError: Form incomplete. No request was made.
            NetworkError: Server unreachable or too slow.
            PersistenceError: The order was rejected.
            CheckoutSessionError: No usable checkout session.
            RedirectError: The provider refused the session.
        """
        if self.state in IN_FLIGHT_STATES:
            raise SubmissionError("Your order is already being placed.")

        self._attempt += 1
        attempt = self._attempt

        self._transition(SubmissionState.VALIDATING)
        try:
            self.validate(cart, details)
        except ValidationError:
            self._fail()
            raise

        totals = cart_service.compute_total(cart, self.fees)
        payload = self.build_order_payload(cart, details, totals)
        submission_id = self._submission_id_for(payload)
        payload = payload.model_copy(update={"submission_id": submission_id})

        self._transition(SubmissionState.PERSISTING_ORDER)
        try:
            order = await self.api.create_order(payload)
        except SubmissionError as e:
            if self._is_stale(attempt):
                return None
            if isinstance(e, NetworkError):
                self._unconfirmed_submission = (payload.model_dump_json(exclude={"submission_id"}), submission_id)
            else:
                self._unconfirmed_submission = None
            self._fail()
            raise

        if self._is_stale(attempt):
            logger.info("Discarding order response for cancelled submission %s", submission_id)
            return None
        self._unconfirmed_submission = None

        order_id = order.get("_id") or order.get("id")
        if not order_id:
            self._fail()
            raise PersistenceError("The server did not return an order number.")
        order_id = str(order_id)

        self._transition(SubmissionState.CREATING_CHECKOUT_SESSION)
        try:
            session = await self.api.create_checkout_session(
                self.build_checkout_request(cart, details, totals, order_id)
            )
            if self._is_stale(attempt):
                logger.info("Discarding checkout session for cancelled order %s", order_id)
                return None

            session_id = session.get("id")
            if not session_id:
                raise CheckoutSessionError("The payment session could not be created.")

            self._transition(SubmissionState.REDIRECTING_TO_PAYMENT)
            redirect_url = self.redirector.redirect(session_id, session.get("url"))
        except SubmissionError as e:
            if self._is_stale(attempt):
                return None
            e.order_id = e.order_id or order_id
            await self._compensate(order_id)
            self._fail()
            raise

        self._transition(SubmissionState.SUCCESS)
        logger.info("Order %s sent to checkout session %s", order_id, session_id)
        return SubmissionResult(
            order_id=order_id,
            session_id=session_id,
            redirect_url=redirect_url,
            submission_id=submission_id,
        )

    def cancel(self) -> None:
        """Abandon the in-flight attempt; late responses are discarded."""
        if self.state in IN_FLIGHT_STATES:
            self._attempt += 1
            self._transition(SubmissionState.IDLE)

    def complete_payment(self, return_url: str | None = None) -> CartState:
        """Called on return from a successful payment. Returns the emptied cart.

        Args:
            return_url: The success redirect, which carries ``order_id`` in
                its query string.
        """
        order_id = order_id_from_return_url(return_url) if return_url else None
        if order_id:
            logger.info("Payment completed for order %s", order_id)
        else:
            logger.warning("Payment completed without an order id in %r", return_url)
        self._transition(SubmissionState.IDLE)
        return cart_service.clear()
