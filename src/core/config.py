"""Application configuration management using Pydantic Settings."""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="localconnect-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5003, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    review_images_bucket: str = Field(default="review-images", description="Storage bucket for review photos")
    worker_images_bucket: str = Field(default="worker-images", description="Storage bucket for worker profile photos")
    ticket_images_bucket: str = Field(default="ticket-images", description="Storage bucket for ticket listing images")

    # Auth tokens
    jwt_secret: str = Field(..., description="HS256 secret used to sign access tokens")
    jwt_expiry_seconds: int = Field(default=3600, description="Access token lifetime in seconds (1 hour)")

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_webhook_secret: str = Field(default="", description="Stripe webhook signing secret")

    # Pricing
    currency: str = Field(default="inr", description="ISO currency code for checkout line items")
    delivery_fee: Decimal = Field(default=Decimal("35"), ge=0, description="Flat delivery fee per order")
    platform_fee: Decimal = Field(default=Decimal("10"), ge=0, description="Flat platform fee per order")
    tax_rate: Decimal = Field(default=Decimal("0.13"), ge=0, description="Tax rate applied after discount and fees")

    # Frontend
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Frontend origin used for checkout success/cancel redirects",
    )

    # API client (order submission flow)
    api_base_url: str = Field(default="http://localhost:5003", description="Base URL the client flow talks to")
    order_request_timeout: float = Field(default=10.0, description="Timeout in seconds for order persistence")
    checkout_request_timeout: float = Field(default=15.0, description="Timeout in seconds for checkout session creation")

    # Rate limiting (per client address)
    rate_limit_login_requests: int = Field(default=10, description="Login attempts per client per window")
    rate_limit_order_requests: int = Field(default=20, description="Order submissions per client per window")
    rate_limit_window_seconds: int = Field(default=60, description="Rate limit window in seconds")

    # Request limits
    max_request_body_size: int = Field(
        default=1024 * 1024,
        description="Maximum request body size in bytes (image uploads are sized from the image limits)",
    )
    review_max_images: int = Field(default=5, description="Maximum images attached to a review")
    review_max_image_bytes: int = Field(default=5 * 1024 * 1024, description="Maximum size of a single review image")
    listing_max_image_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum size of a worker profile photo or ticket image",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_stripe_test_mode(self) -> bool:
        """Check if using Stripe test keys."""
        return self.stripe_secret_key.startswith("sk_test_")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
