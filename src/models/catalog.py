"""Worker and ticket listing type definitions."""

from datetime import datetime
from typing import Any, TypedDict


class Worker(TypedDict, total=False):
    """workers table row: a bookable service provider."""

    id: str
    full_name: str
    worker_type: str
    worker_types: list[str]
    price: str
    fees: str
    experience_years: int
    location: str
    address: str
    city: str
    state: str
    country: str
    phone: str
    email: str
    age: int
    gender: str
    profile_image: str | None
    created_at: datetime


class Ticket(TypedDict, total=False):
    """tickets table row: an event with tickets for sale."""

    id: str
    event_name: str
    category: str
    venue: str
    event_date: str
    price: str
    fees: str
    available_tickets: int
    image: str | None
    # Form fields specific to the listing kind (seat, policies, festival dates ...)
    details: dict[str, Any]
    created_at: datetime
