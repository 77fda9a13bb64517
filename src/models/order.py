"""Order model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict


# Order status values matching the orders.status check constraint
OrderStatus = Literal["pending", "paid", "abandoned", "cancelled"]


class OrderContactInfo(TypedDict):
    """Contact details stored in the contact_info JSONB column."""

    full_name: str
    phone: str
    email: str


class OrderItem(TypedDict):
    """Structure for a single item in the items JSONB array."""

    item_id: str
    item_type: str
    name: str
    price: str
    quantity: int
    fee: str


class Order(TypedDict):
    """Order table row representation.

    Money columns are numeric and travel as strings to keep exact decimals.
    """

    id: str
    booking_type: Literal["service", "event"]
    contact_info: OrderContactInfo | None
    items: list[OrderItem]
    location: str
    date: str
    time_slots: list[str]
    subtotal: str
    delivery_fee: str
    platform_fee: str
    discount: str
    tax: str
    total: str
    promo_code: str
    status: OrderStatus
    submission_id: str | None
    stripe_checkout_session_id: str | None
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime
