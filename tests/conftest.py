"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

ORDER_ID = "660e8400-e29b-41d4-a716-446655440000"


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> Generator[None, None, None]:
    """Start every test with empty rate limit windows."""
    from src.core.rate_limiter import get_rate_limiter

    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("src.core.supabase.get_supabase_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def worker_row() -> dict[str, Any]:
    """A workers table row."""
    return {
        "id": "w-1",
        "full_name": "Ravi Kumar",
        "worker_type": "Plumber",
        "price": 500,
        "fees": 0,
        "experience_years": 6,
        "location": "Chennai",
        "profile_image": "ravi.jpg",
    }


@pytest.fixture
def ticket_row() -> dict[str, Any]:
    """A tickets table row."""
    return {
        "id": "t-1",
        "event_name": "Sunburn Arena",
        "category": "festivals",
        "venue": "Palace Grounds",
        "event_date": "2026-12-20",
        "price": 1200,
        "fees": 50,
        "available_tickets": 3,
        "image": "sunburn.jpg",
    }


@pytest.fixture
def service_order_payload() -> dict[str, Any]:
    """camelCase body for a one-worker service order priced at the default fees."""
    return {
        "bookingType": "service",
        "contactInfo": {
            "fullName": "Asha Rao",
            "mobileNumber": "9876543210",
            "email": "asha@example.com",
        },
        "items": [
            {
                "itemId": "w-1",
                "itemType": "Worker",
                "name": "Ravi Kumar",
                "price": 500,
                "quantity": 1,
                "fees": 0,
            }
        ],
        "location": "12 MG Road, Chennai",
        "date": "2026-11-02",
        "timeSlots": ["10:00 AM - 12:00 PM"],
        "subtotal": 500,
        "deliveryFee": 35,
        "platformFee": 10,
        "discount": 0,
        "tax": "70.85",
        "total": "615.85",
        "promoCode": "",
        "submissionId": "sub-123",
    }


@pytest.fixture
def order_row() -> dict[str, Any]:
    """A stored pending service order."""
    return {
        "id": ORDER_ID,
        "booking_type": "service",
        "contact_info": {"full_name": "Asha Rao", "phone": "9876543210", "email": "asha@example.com"},
        "items": [
            {
                "item_id": "w-1",
                "item_type": "Worker",
                "name": "Ravi Kumar",
                "price": "500",
                "quantity": 1,
                "fee": "0",
            }
        ],
        "location": "12 MG Road, Chennai",
        "date": "2026-11-02",
        "time_slots": ["10:00 AM - 12:00 PM"],
        "subtotal": str(Decimal("500")),
        "delivery_fee": "35",
        "platform_fee": "10",
        "discount": "0",
        "tax": "70.85",
        "total": "615.85",
        "promo_code": "",
        "status": "pending",
        "submission_id": "sub-123",
        "stripe_checkout_session_id": None,
        "paid_at": None,
        "created_at": "2026-10-19T10:00:00+00:00",
    }
