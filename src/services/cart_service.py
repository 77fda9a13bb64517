"""Cart aggregation and pricing.

Every function here is a pure reducer over ``CartState``: it takes a state
and returns a new one, or derives totals from it. Nothing touches the
network, so the same code prices carts in the client flow and verifies
submitted orders on the server.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from src.core.config import get_settings
from src.schemas.cart import (
    DEFAULT_CATEGORY,
    AppliedPromo,
    BookingCategory,
    CartState,
    CartTotals,
    ServiceBooking,
    TicketPurchase,
)
from src.schemas.checkout import CheckoutLineItem, PriceData, ProductData
from src.schemas.order import OrderItemSnapshot
from src.services.promo_service import PromoPolicy, StaticPromoPolicy

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

TICKET_KINDS = {
    "concert": "ConcertTicket",
    "theater": "TheaterTicket",
    "sports": "SportsTicket",
    "festivals": "FestivalsTicket",
}


class CartError(ValueError):
    """Raised when an item does not belong in the requested collection."""


@dataclass(frozen=True)
class FeeSchedule:
    """Order-level charges applied on top of the item subtotal."""

    delivery_fee: Decimal = Decimal("35")
    platform_fee: Decimal = Decimal("10")
    tax_rate: Decimal = Decimal("0.13")
    currency: str = "inr"

    @classmethod
    def from_settings(cls) -> "FeeSchedule":
        """Create the schedule from application settings."""
        settings = get_settings()
        return cls(
            delivery_fee=settings.delivery_fee,
            platform_fee=settings.platform_fee,
            tax_rate=settings.tax_rate,
            currency=settings.currency,
        )


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to paise/cents, rounding half up."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _check_category(category: BookingCategory, item: ServiceBooking | TicketPurchase) -> None:
    expected = ServiceBooking if category == "service" else TicketPurchase
    if not isinstance(item, expected):
        raise CartError(f"{item.item_type} items cannot be added to the {category} cart")


def _with_items(state: CartState, category: BookingCategory, items: tuple) -> CartState:
    field = "services" if category == "service" else "events"
    return state.model_copy(update={field: items})


def add_item(
    state: CartState,
    category: BookingCategory,
    item: ServiceBooking | TicketPurchase,
) -> CartState:
    """Add a line item to a category.

    A ticket whose id is already in the cart raises that entry's quantity
    instead of adding a second entry, capped at the tickets available.
    """
    _check_category(category, item)
    items = state.items_for(category)

    if isinstance(item, TicketPurchase):
        for index, existing in enumerate(items):
            if existing.id == item.id:
                quantity = min(existing.quantity + item.quantity, existing.available_tickets)
                if quantity == existing.quantity:
                    return state
                merged = existing.model_copy(update={"quantity": quantity})
                return _with_items(state, category, items[:index] + (merged,) + items[index + 1:])

    return _with_items(state, category, items + (item,))


def remove_item(state: CartState, category: BookingCategory, item_id: str) -> CartState:
    """Remove every entry with the given id. Unknown ids are ignored."""
    items = state.items_for(category)
    remaining = tuple(item for item in items if item.id != item_id)
    if len(remaining) == len(items):
        return state
    return _with_items(state, category, remaining)


def set_quantity(
    state: CartState,
    category: BookingCategory,
    item_id: str,
    quantity: int,
) -> CartState:
    """Set an item's quantity.

    Ticket quantities clamp to ``[1, available_tickets]``. Service bookings
    always stay at 1.
    """
    items = state.items_for(category)
    updated = []
    changed = False
    for item in items:
        if item.id == item_id:
            if isinstance(item, TicketPurchase):
                clamped = max(1, min(quantity, item.available_tickets))
            else:
                clamped = 1
            if clamped != item.quantity:
                item = item.model_copy(update={"quantity": clamped})
                changed = True
        updated.append(item)
    if not changed:
        return state
    return _with_items(state, category, tuple(updated))


def set_active_category(state: CartState, category: BookingCategory) -> CartState:
    """Switch which collection is displayed and totalled."""
    if state.active_category == category:
        return state
    return state.model_copy(update={"active_category": category})


def clear(state: CartState | None = None) -> CartState:
    """Return an empty cart with the default active category.

    ``state`` is accepted so clearing reads like the other reducers; its
    contents are discarded.
    """
    return CartState(active_category=DEFAULT_CATEGORY)


def compute_subtotal(items: Iterable[ServiceBooking | TicketPurchase | OrderItemSnapshot]) -> Decimal:
    """Sum of (price + fee) x quantity."""
    return sum(((item.price + item.fee) * item.quantity for item in items), ZERO)


def compute_totals(subtotal: Decimal, discount: Decimal, fees: FeeSchedule) -> CartTotals:
    """Derive tax and grand total from a subtotal and discount.

    The discount never exceeds the subtotal.
    """
    discount = min(discount, subtotal)
    taxable = subtotal - discount + fees.delivery_fee + fees.platform_fee
    tax = taxable * fees.tax_rate
    return CartTotals(
        subtotal=subtotal,
        discount=discount,
        delivery_fee=fees.delivery_fee,
        platform_fee=fees.platform_fee,
        tax=tax,
        total=taxable + tax,
    )


def compute_total(
    state: CartState,
    fees: FeeSchedule,
    category: BookingCategory | None = None,
) -> CartTotals:
    """Totals for one category, the active one by default.

    The discount is re-derived from the category's promo and current subtotal.
    """
    category = category or state.active_category
    subtotal = compute_subtotal(state.items_for(category))
    return compute_totals(subtotal, state.discount_for(category), fees)


def apply_promo_code(
    state: CartState,
    code: str,
    policy: PromoPolicy | None = None,
) -> CartState:
    """Apply a promo code to the active category only.

    A match stores the code and its percentage on that category; the
    discount is re-derived from the category's subtotal whenever totals are
    computed. An unknown code removes that category's promo and leaves the
    other category's untouched.
    """
    policy = policy or StaticPromoPolicy()
    category = state.active_category
    promo_field = "service_promo" if category == "service" else "event_promo"
    rule = policy.lookup(code)

    if rule is None:
        logger.info("Promo code %r rejected for %s cart", code, category)
        return state.model_copy(update={promo_field: None})

    promo = AppliedPromo(code=rule.code, discount_percentage=rule.discount_percentage)
    state = state.model_copy(update={promo_field: promo})
    logger.info("Promo code %s applied to %s cart: %s off", rule.code, category, state.discount_for(category))
    return state


def snapshot_items(state: CartState, category: BookingCategory) -> list[OrderItemSnapshot]:
    """Copy a category's items into order snapshots."""
    snapshots = []
    for item in state.items_for(category):
        item_type = "Worker" if isinstance(item, ServiceBooking) else item.ticket_kind
        snapshots.append(
            OrderItemSnapshot(
                item_id=item.id,
                item_type=item_type,
                name=item.display_name,
                price=item.price,
                quantity=item.quantity,
                fee=item.fee,
            )
        )
    return snapshots


def checkout_line_items(
    items: Iterable[OrderItemSnapshot],
    totals: CartTotals,
    currency: str,
) -> list[CheckoutLineItem]:
    """Itemized charges for the payment provider, in minor units.

    One line per item at its undiscounted unit amount, then the delivery
    fee, platform fee and tax when they are above zero.
    """
    line_items = [
        CheckoutLineItem(
            price_data=PriceData(
                currency=currency,
                product_data=ProductData(name=item.name),
                unit_amount=to_minor_units(item.price + item.fee),
            ),
            quantity=item.quantity,
        )
        for item in items
    ]

    for name, amount in (
        ("Delivery Fee", totals.delivery_fee),
        ("Platform Fee", totals.platform_fee),
        ("GST & Charges", totals.tax),
    ):
        if amount > 0:
            line_items.append(
                CheckoutLineItem(
                    price_data=PriceData(
                        currency=currency,
                        product_data=ProductData(name=name),
                        unit_amount=to_minor_units(amount),
                    ),
                )
            )
    return line_items


def service_booking_from_worker(worker: dict[str, Any]) -> ServiceBooking:
    """Build a service booking from a ``workers`` row."""
    return ServiceBooking(
        id=str(worker["id"]),
        price=Decimal(str(worker.get("price") or 0)),
        fee=Decimal(str(worker.get("fees") or 0)),
        provider_name=worker.get("full_name") or "Worker",
        service_type=worker.get("worker_type") or "Service",
        profile_image=worker.get("profile_image"),
    )


def ticket_purchase_from_listing(ticket: dict[str, Any], quantity: int = 1) -> TicketPurchase:
    """Build a ticket purchase from a ``tickets`` row."""
    category = (ticket.get("category") or "concert").lower()
    return TicketPurchase(
        id=str(ticket["id"]),
        price=Decimal(str(ticket.get("price") or 0)),
        fee=Decimal(str(ticket.get("fees") or 0)),
        quantity=quantity,
        event_name=ticket.get("event_name") or "Event Ticket",
        available_tickets=int(ticket["available_tickets"]),
        ticket_image=ticket.get("image"),
        ticket_kind=TICKET_KINDS.get(category, "ConcertTicket"),
    )
