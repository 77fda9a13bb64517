"""Checkout session Pydantic schemas (Stripe Checkout payloads)."""

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class ProductData(BaseModel):
    """Product description shown on the hosted checkout page."""

    name: str = Field(min_length=1, description="Line item name")
    description: str | None = Field(default=None, description="Optional line item description")


class PriceData(BaseModel):
    """Inline price for a checkout line item."""

    currency: str = Field(min_length=3, max_length=3, description="ISO currency code")
    product_data: ProductData
    unit_amount: int = Field(ge=0, description="Unit amount in minor units (paise/cents)")


class CheckoutLineItem(BaseModel):
    """One itemized charge passed to the payment provider."""

    price_data: PriceData
    quantity: int = Field(default=1, ge=1)


class CheckoutSessionCreate(BaseModel):
    """Schema for POST /api/create-checkout-session."""

    model_config = ConfigDict(from_attributes=True)

    line_items: list[CheckoutLineItem] = Field(min_length=1, description="Itemized charges")
    metadata: dict[str, str] = Field(default_factory=dict, description="Booking metadata")
    order_id: str = Field(min_length=1, description="Persisted order identifier")
    success_url: HttpUrl = Field(description="URL to redirect after successful checkout")
    cancel_url: HttpUrl = Field(description="URL to redirect if checkout is cancelled")


class CheckoutSessionResponse(BaseModel):
    """Schema for checkout session creation response."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Stripe Checkout Session ID")
    url: str | None = Field(default=None, description="Hosted checkout URL to redirect to")
