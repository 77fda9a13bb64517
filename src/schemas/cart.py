"""Cart line item, cart state and totals schemas."""

from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Booking categories, one cart collection each
BookingCategory = Literal["service", "event"]

DEFAULT_CATEGORY: BookingCategory = "service"


class ServiceBooking(BaseModel):
    """A worker booked for a service visit. Not quantity-bearing."""

    model_config = ConfigDict(frozen=True)

    item_type: Literal["service"] = "service"
    id: str = Field(min_length=1, description="Worker identifier")
    price: Decimal = Field(ge=0, description="Unit price")
    quantity: Literal[1] = Field(default=1, description="Always 1 for service bookings")
    fee: Decimal = Field(default=Decimal("0"), ge=0, description="Per-unit fee")
    provider_name: str = Field(description="Worker display name")
    service_type: str = Field(default="Service", description="Trade, e.g. plumber or mechanic")
    profile_image: str | None = Field(default=None, description="Profile image reference")

    @property
    def display_name(self) -> str:
        return self.provider_name

    @property
    def unit_amount(self) -> Decimal:
        return self.price + self.fee


class TicketPurchase(BaseModel):
    """Tickets for an event listing."""

    model_config = ConfigDict(frozen=True)

    item_type: Literal["ticket"] = "ticket"
    id: str = Field(min_length=1, description="Ticket listing identifier")
    price: Decimal = Field(ge=0, description="Unit price")
    quantity: int = Field(default=1, ge=1, description="Number of tickets")
    fee: Decimal = Field(default=Decimal("0"), ge=0, description="Per-ticket booking fee")
    event_name: str = Field(description="Event name")
    available_tickets: int = Field(ge=1, description="Tickets left for sale")
    ticket_image: str | None = Field(default=None, description="Ticket image reference")
    ticket_kind: str = Field(default="ConcertTicket", description="Listing kind, e.g. FestivalsTicket")

    @model_validator(mode="after")
    def check_quantity_available(self) -> "TicketPurchase":
        if self.quantity > self.available_tickets:
            raise ValueError(
                f"quantity {self.quantity} exceeds available tickets {self.available_tickets}"
            )
        return self

    @property
    def display_name(self) -> str:
        return self.event_name

    @property
    def unit_amount(self) -> Decimal:
        return self.price + self.fee


class AppliedPromo(BaseModel):
    """A promo code accepted for one cart category."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1, description="Canonical promo code")
    discount_percentage: Decimal = Field(ge=0, le=100, description="Percentage off the subtotal")


CartLineItem = Annotated[Union[ServiceBooking, TicketPurchase], Field(discriminator="item_type")]


class CartState(BaseModel):
    """Immutable cart value.

    Every cart operation returns a new state; nothing mutates in place.
    Each category keeps its own promo. The discount amount is never stored:
    it is derived from the promo's percentage and the category's current
    subtotal, so it follows the items as they are added and removed.
    """

    model_config = ConfigDict(frozen=True)

    services: tuple[ServiceBooking, ...] = ()
    events: tuple[TicketPurchase, ...] = ()
    active_category: BookingCategory = DEFAULT_CATEGORY
    service_promo: AppliedPromo | None = None
    event_promo: AppliedPromo | None = None

    def items_for(self, category: BookingCategory) -> tuple[ServiceBooking, ...] | tuple[TicketPurchase, ...]:
        return self.services if category == "service" else self.events

    def promo_for(self, category: BookingCategory) -> AppliedPromo | None:
        return self.service_promo if category == "service" else self.event_promo

    def promo_code_for(self, category: BookingCategory) -> str:
        promo = self.promo_for(category)
        return promo.code if promo else ""

    def discount_for(self, category: BookingCategory) -> Decimal:
        """Discount the category's promo grants on its current subtotal."""
        promo = self.promo_for(category)
        if promo is None:
            return Decimal("0")
        subtotal = sum((item.unit_amount * item.quantity for item in self.items_for(category)), Decimal("0"))
        return subtotal * promo.discount_percentage / Decimal(100)

    @property
    def promo_code(self) -> str:
        """Code applied to the active category, or an empty string."""
        return self.promo_code_for(self.active_category)

    @property
    def active_items(self) -> tuple[ServiceBooking, ...] | tuple[TicketPurchase, ...]:
        return self.items_for(self.active_category)

    @property
    def is_empty(self) -> bool:
        return not self.services and not self.events


class CartTotals(BaseModel):
    """Derived totals for one cart category."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    discount: Decimal
    delivery_fee: Decimal
    platform_fee: Decimal
    tax: Decimal
    total: Decimal


class CartQuoteRequest(BaseModel):
    """Schema for POST /api/cart/quote."""

    cart: CartState = Field(description="Cart to price")
    category: BookingCategory | None = Field(default=None, description="Category to total (defaults to active)")


class PromoCodeResponse(BaseModel):
    """Schema for GET /api/promo-codes/{code}."""

    code: str = Field(description="Canonical promo code")
    discount_percentage: Decimal = Field(description="Percentage off the subtotal")
