"""Order Pydantic schemas for the order persistence API.

The order endpoints speak camelCase JSON (``bookingType``, ``contactInfo``,
``timeSlots`` ...) and return the identifier as ``_id``. Field names stay
snake_case in Python; ``populate_by_name`` lets database rows validate
directly.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from src.models.order import OrderStatus
from src.schemas.cart import BookingCategory

PHONE_PATTERN = r"^\d{10}$"
EMAIL_PATTERN = r"^\w+([\.-]?\w+)*@\w+([\.-]?\w+)*(\.\w{2,3})+$"


class CamelModel(BaseModel):
    """Base model for camelCase wire formats."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ContactInfo(CamelModel):
    """Customer contact details collected before a service booking."""

    full_name: str = Field(min_length=1, description="Customer full name")
    phone: str = Field(
        pattern=PHONE_PATTERN,
        validation_alias=AliasChoices("phone", "mobileNumber", "mobile_number"),
        description="10-digit mobile number",
    )
    email: str = Field(pattern=EMAIL_PATTERN, description="Customer email address")


class OrderItemSnapshot(CamelModel):
    """Immutable copy of one cart line item at submission time."""

    item_id: str = Field(description="Worker or ticket listing identifier")
    item_type: str = Field(description="Worker, ConcertTicket, FestivalsTicket ...")
    name: str = Field(description="Display name")
    price: Decimal = Field(ge=0, description="Unit price")
    quantity: int = Field(ge=1, description="Quantity")
    fee: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("fee", "fees"),
        description="Per-unit fee",
    )


class OrderCreate(CamelModel):
    """Schema for creating an order via POST /api/orders."""

    booking_type: BookingCategory = Field(description="service or event")
    contact_info: ContactInfo | None = Field(default=None, description="Required for service bookings")
    items: list[OrderItemSnapshot] = Field(min_length=1, description="Cart snapshot")
    location: str = Field(min_length=1, description="Service or delivery address")
    date: str = Field(min_length=1, description="Booking date")
    time_slots: list[str] = Field(default_factory=list, description="Selected service time slots")
    subtotal: Decimal = Field(ge=0)
    delivery_fee: Decimal = Field(ge=0)
    platform_fee: Decimal = Field(ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(ge=0)
    total: Decimal = Field(ge=0)
    promo_code: str = Field(default="", description="Applied promo code, empty if none")
    submission_id: str | None = Field(
        default=None,
        max_length=64,
        description="Client-generated idempotency key for this submission",
    )

    @model_validator(mode="after")
    def check_service_requirements(self) -> "OrderCreate":
        if not self.location.strip():
            raise ValueError("location is required")
        if not self.date.strip():
            raise ValueError("date is required")
        if self.booking_type == "service":
            if self.contact_info is None:
                raise ValueError("contactInfo is required for service bookings")
            if not self.time_slots:
                raise ValueError("at least one time slot is required for service bookings")
            if any(item.quantity != 1 for item in self.items):
                raise ValueError("service bookings have a quantity of 1")
        return self


class OrderResponse(CamelModel):
    """Schema for order API responses."""

    id: str = Field(alias="_id", description="Order unique identifier")
    booking_type: BookingCategory
    contact_info: ContactInfo | None = None
    items: list[OrderItemSnapshot]
    location: str
    date: str
    time_slots: list[str] = Field(default_factory=list)
    subtotal: Decimal
    delivery_fee: Decimal
    platform_fee: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    promo_code: str = ""
    status: OrderStatus
    stripe_checkout_session_id: str | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None
