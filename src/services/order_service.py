"""Order persistence business logic service."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from src.api.middleware.error_handler import ConflictError, NotFoundError, ValidationError
from src.core.supabase import get_supabase_client
from src.models.order import Order
from src.schemas.order import OrderCreate
from src.services.cart_service import FeeSchedule, compute_subtotal, compute_totals
from src.services.promo_service import PromoPolicy, get_promo_policy

logger = logging.getLogger(__name__)

# Allowed drift between client-computed and server-computed amounts
AMOUNT_TOLERANCE = Decimal("0.01")


class OrderService:
    """Service for creating and updating orders."""

    def __init__(
        self,
        fees: FeeSchedule | None = None,
        promo_policy: PromoPolicy | None = None,
    ) -> None:
        """Initialize order service with clients.

        Args:
            fees: Fee schedule used to verify totals (settings by default).
            promo_policy: Policy used to verify discounts.
        """
        self.client = get_supabase_client()
        self.fees = fees or FeeSchedule.from_settings()
        self.promo_policy = promo_policy or get_promo_policy()

    def verify_totals(self, data: OrderCreate) -> None:
        """Check the submitted amounts against server-side pricing.

        The discount may be lower than what the promo code grants on the
        submitted subtotal but never higher.

        Raises:
            ValidationError: If any amount disagrees with server pricing.
        """
        errors: list[dict[str, Any]] = []

        subtotal = compute_subtotal(data.items)
        if abs(subtotal - data.subtotal) > AMOUNT_TOLERANCE:
            errors.append({"loc": ["subtotal"], "msg": f"Expected subtotal {subtotal}", "type": "amount_mismatch"})

        if data.delivery_fee != self.fees.delivery_fee:
            errors.append({"loc": ["deliveryFee"], "msg": f"Expected delivery fee {self.fees.delivery_fee}", "type": "amount_mismatch"})
        if data.platform_fee != self.fees.platform_fee:
            errors.append({"loc": ["platformFee"], "msg": f"Expected platform fee {self.fees.platform_fee}", "type": "amount_mismatch"})

        max_discount = Decimal("0")
        rule = self.promo_policy.lookup(data.promo_code)
        if rule is not None:
            max_discount = rule.discount_for(subtotal)
        if data.discount - max_discount > AMOUNT_TOLERANCE:
            errors.append({"loc": ["discount"], "msg": f"Discount exceeds {max_discount}", "type": "invalid_discount"})

        expected = compute_totals(subtotal, data.discount, self.fees)
        if abs(expected.tax - data.tax) > AMOUNT_TOLERANCE:
            errors.append({"loc": ["tax"], "msg": f"Expected tax {expected.tax}", "type": "amount_mismatch"})
        if abs(expected.total - data.total) > AMOUNT_TOLERANCE:
            errors.append({"loc": ["total"], "msg": f"Expected total {expected.total}", "type": "amount_mismatch"})

        if errors:
            logger.warning("Rejected order with inconsistent totals: %s", errors)
            raise ValidationError("Order totals do not match current pricing", details=errors)

    async def create_order(self, data: OrderCreate) -> tuple[Order, bool]:
        """Persist a new pending order.

        Args:
            data: Validated order payload.

        Returns:
            tuple: (order row, created). ``created`` is False when an order
            with the same submission id already exists and was returned
            instead of inserting a duplicate.

        Raises:
            ValidationError: If totals do not match server pricing.
        """
        self.verify_totals(data)

        if data.submission_id:
            existing = await self.get_order_by_submission(data.submission_id)
            if existing:
                logger.info(
                    "Duplicate submission %s, returning order %s",
                    data.submission_id,
                    existing["id"],
                )
                return existing, False

        order_data = data.model_dump(mode="json", by_alias=False)
        order_data["status"] = "pending"

        response = self.client.table("orders").insert(order_data).execute()
        order = response.data[0]
        logger.info("Order %s created (%s booking, total %s)", order["id"], data.booking_type, data.total)
        return order, True

    async def get_order(self, order_id: str) -> Order | None:
        """Get an order by ID.

        Args:
            order_id: The order's identifier.

        Returns:
            dict | None: The order data or None if not found.
        """
        response = (
            self.client.table("orders")
            .select("*")
            .eq("id", order_id)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def get_order_by_submission(self, submission_id: str) -> Order | None:
        """Get the order created by a given submission, if any."""
        response = (
            self.client.table("orders")
            .select("*")
            .eq("submission_id", submission_id)
            .limit(1)
            .execute()
        )

        return response.data[0] if response and response.data else None

    async def require_pending_order(self, order_id: str) -> Order:
        """Get an order that is still awaiting payment.

        Raises:
            NotFoundError: If the order does not exist.
            ConflictError: If the order is no longer pending.
        """
        order = await self.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order["status"] != "pending":
            raise ConflictError(f"Order is already {order['status']}")
        return order

    async def attach_checkout_session(self, order_id: str, session_id: str) -> None:
        """Record the Stripe Checkout Session created for an order."""
        self.client.table("orders").update(
            {"stripe_checkout_session_id": session_id}
        ).eq("id", order_id).execute()

    async def mark_abandoned(self, order_id: str) -> Order:
        """Move a pending order to abandoned.

        Raises:
            NotFoundError: If the order does not exist.
            ConflictError: If the order is not pending.
        """
        await self.require_pending_order(order_id)

        response = (
            self.client.table("orders")
            .update({"status": "abandoned"})
            .eq("id", order_id)
            .eq("status", "pending")
            .execute()
        )
        if not response.data:
            raise ConflictError("Order is no longer pending")

        logger.info("Order %s marked as abandoned", order_id)
        return response.data[0]

    async def mark_paid(self, order_id: str, session_id: str | None = None) -> dict[str, Any]:
        """Mark an order as paid after the provider confirms payment.

        Returns:
            dict: Updated order data, empty if the order was not found.
        """
        update_data: dict[str, Any] = {
            "status": "paid",
            "paid_at": datetime.now(timezone.utc).isoformat(),
        }
        if session_id:
            update_data["stripe_checkout_session_id"] = session_id

        response = (
            self.client.table("orders")
            .update(update_data)
            .eq("id", order_id)
            .execute()
        )

        if response.data:
            logger.info("Order %s marked as paid", order_id)
            return response.data[0]

        logger.warning("Order not found for payment: %s", order_id)
        return {}

    async def mark_expired(self, order_id: str) -> None:
        """Abandon an order whose checkout session expired unpaid."""
        self.client.table("orders").update(
            {"status": "abandoned"}
        ).eq("id", order_id).eq("status", "pending").execute()

        logger.info("Order %s marked as abandoned (checkout expired)", order_id)
