"""Stripe Checkout business logic service."""

import logging
from decimal import Decimal
from typing import Any

import stripe

from src.api.middleware.error_handler import PaymentError, ValidationError
from src.core.config import get_settings
from src.core.stripe import get_stripe
from src.models.order import Order
from src.schemas.cart import CartTotals
from src.schemas.checkout import CheckoutLineItem, CheckoutSessionCreate
from src.schemas.order import OrderItemSnapshot
from src.services.cart_service import checkout_line_items, to_minor_units
from src.services.order_service import OrderService

logger = logging.getLogger(__name__)


class CheckoutService:
    """Service for Stripe Checkout sessions and payment webhooks."""

    def __init__(self, order_service: OrderService | None = None) -> None:
        """Initialize checkout service with clients."""
        self.stripe = get_stripe()
        self.settings = get_settings()
        self.order_service = order_service or OrderService()

    def _order_line_items(self, order: Order) -> list[CheckoutLineItem]:
        """Charges for a persisted order, in the configured currency."""
        items = [OrderItemSnapshot.model_validate(item) for item in order.get("items") or []]
        totals = CartTotals(
            **{
                field: Decimal(str(order.get(field) or 0))
                for field in ("subtotal", "discount", "delivery_fee", "platform_fee", "tax", "total")
            }
        )
        return checkout_line_items(items, totals, self.settings.currency)

    def _check_line_items(
        self,
        order_id: str,
        submitted: list[CheckoutLineItem],
        expected: list[CheckoutLineItem],
    ) -> None:
        """Reject client line items that disagree with the stored order.

        Raises:
            ValidationError: On a foreign currency or a different amount.
        """
        errors: list[dict[str, Any]] = []

        currencies = {item.price_data.currency.lower() for item in submitted}
        if currencies != {self.settings.currency.lower()}:
            errors.append(
                {
                    "loc": ["line_items", "price_data", "currency"],
                    "msg": f"Expected currency {self.settings.currency}",
                    "type": "currency_mismatch",
                }
            )

        submitted_amount = sum(item.price_data.unit_amount * item.quantity for item in submitted)
        expected_amount = sum(item.price_data.unit_amount * item.quantity for item in expected)
        if submitted_amount != expected_amount:
            errors.append(
                {
                    "loc": ["line_items"],
                    "msg": f"Expected line items totalling {expected_amount}",
                    "type": "amount_mismatch",
                }
            )

        if errors:
            logger.warning("Rejected checkout line items for order %s: %s", order_id, errors)
            raise ValidationError("Checkout charges do not match the order", details=errors)

    async def create_checkout_session(self, data: CheckoutSessionCreate) -> dict[str, Any]:
        """Create a Stripe Checkout Session for a persisted order.

        If Stripe rejects the request the order is marked abandoned so it
        does not sit in ``pending`` forever. Line items are rebuilt from the
        stored order; the submitted ones must agree with them in currency and
        amount.

        Args:
            data: Itemized charges, metadata and redirect targets.

        Returns:
            dict: Contains id (session id) and url (hosted checkout page).

        Raises:
            ValueError: If Stripe is not configured.
            NotFoundError: If the order does not exist.
            ValidationError: If the submitted line items disagree with the order.
            ConflictError: If the order is not pending.
            PaymentError: If the Stripe API call fails.
        """
        if not self.settings.stripe_secret_key:
            raise ValueError("Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable.")

        order = await self.order_service.require_pending_order(data.order_id)
        order_id = str(order["id"])

        line_items = self._order_line_items(order)
        self._check_line_items(order_id, data.line_items, line_items)

        checkout_params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [item.model_dump(exclude_none=True) for item in line_items],
            "success_url": str(data.success_url),
            "cancel_url": str(data.cancel_url),
            "client_reference_id": order_id,
            "metadata": {**data.metadata, "order_id": order_id},
        }

        contact = order.get("contact_info") or {}
        if contact.get("email"):
            checkout_params["customer_email"] = contact["email"]

        discount = Decimal(str(order.get("discount") or 0))

        try:
            if discount > 0:
                # Line items carry undiscounted prices; the promo is a one-off coupon
                coupon = self.stripe.Coupon.create(
                    amount_off=to_minor_units(discount),
                    currency=self.settings.currency,
                    duration="once",
                    name=order.get("promo_code") or "Discount",
                )
                checkout_params["discounts"] = [{"coupon": coupon.id}]

            stripe_session = self.stripe.checkout.Session.create(**checkout_params)
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session for order %s: %s", order_id, str(e))
            await self.order_service.mark_abandoned(order_id)
            raise PaymentError(getattr(e, "user_message", None) or "Payment provider rejected the checkout request") from e

        await self.order_service.attach_checkout_session(order_id, stripe_session.id)
        logger.info("Checkout session %s created for order %s", stripe_session.id, order_id)

        return {
            "id": stripe_session.id,
            "url": stripe_session.url,
        }

    async def handle_checkout_completed(self, event: dict[str, Any]) -> dict[str, Any]:
        """Process checkout.session.completed webhook event.

        Args:
            event: Stripe webhook event data.

        Returns:
            dict: Updated order data.
        """
        session = event["data"]["object"]
        order_id = (session.get("metadata") or {}).get("order_id") or session.get("client_reference_id")

        if not order_id:
            logger.warning("Webhook missing order_id in metadata: %s", session.get("id"))
            return {}

        if session.get("payment_status") not in (None, "paid", "no_payment_required"):
            logger.info("Checkout %s completed without payment (%s)", session.get("id"), session.get("payment_status"))
            return {}

        return await self.order_service.mark_paid(order_id, session.get("id"))

    async def handle_checkout_expired(self, event: dict[str, Any]) -> None:
        """Process checkout.session.expired webhook event.

        Args:
            event: Stripe webhook event data.
        """
        session = event["data"]["object"]
        order_id = (session.get("metadata") or {}).get("order_id") or session.get("client_reference_id")

        if not order_id:
            logger.warning("Webhook missing order_id in metadata: %s", session.get("id"))
            return

        await self.order_service.mark_expired(order_id)

    async def handle_event(self, event: dict[str, Any]) -> bool:
        """Route a verified webhook event to its handler.

        Returns:
            bool: False for event types this service ignores.
        """
        handlers = {
            "checkout.session.completed": self.handle_checkout_completed,
            "checkout.session.expired": self.handle_checkout_expired,
        }
        handler = handlers.get(event.get("type", ""))
        if handler is None:
            logger.debug("Ignoring Stripe event %s", event.get("type"))
            return False

        await handler(event)
        return True

    def verify_webhook_signature(
        self, payload: bytes, sig_header: str
    ) -> dict[str, Any]:
        """Verify Stripe webhook signature and return event.

        Args:
            payload: Raw webhook payload bytes.
            sig_header: Stripe-Signature header value.

        Returns:
            dict: Verified Stripe event.

        Raises:
            ValueError: If signature is invalid or Stripe not configured.
        """
        if not self.settings.stripe_webhook_secret:
            raise ValueError("Stripe webhook secret is not configured. Please set STRIPE_WEBHOOK_SECRET environment variable.")

        try:
            return self.stripe.Webhook.construct_event(
                payload, sig_header, self.settings.stripe_webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise ValueError("Invalid webhook signature") from e
