"""Worker registration and ticket listing form schemas."""

import json
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from src.schemas.catalog import TicketResponse, WorkerResponse
from src.schemas.order import EMAIL_PATTERN

# Checkbox names on the registration form and the trade each one stands for
WORKER_TYPE_LABELS = {
    "acRepair": "AC Repair",
    "mechanicRepair": "Mechanic",
    "electricalRepair": "Electrician",
    "electronicRepair": "Electronics Repair",
    "plumber": "Plumber",
}


class WorkerRegistration(BaseModel):
    """A worker's registration form.

    ``worker_types`` arrives as the form's checkbox map, either as a JSON
    string or a dict, and is kept as the list of checked trades.
    """

    full_name: str = Field(min_length=1, max_length=100)
    phone_number: str = Field(min_length=7, max_length=20, description="Contact number")
    worker_types: list[str] = Field(min_length=1, description="Trades offered, e.g. Plumber")
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    country: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    age: int = Field(ge=18, le=100)
    gender: str = Field(min_length=1)
    cost_per_hour: Decimal = Field(ge=0, description="Hourly rate, used as the booking price")

    @field_validator("worker_types", mode="before")
    @classmethod
    def checked_worker_types(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError("workerTypes must be a JSON object of checkboxes") from e
        if not isinstance(value, dict):
            return value

        unknown = set(value) - set(WORKER_TYPE_LABELS)
        if unknown:
            raise ValueError(f"unknown worker types: {', '.join(sorted(unknown))}")
        return [label for key, label in WORKER_TYPE_LABELS.items() if value.get(key)]


class TicketListingCreate(BaseModel):
    """Fields shared by every ticket listing form."""

    venue: str = Field(min_length=1)
    ticket_holder_name: str = Field(min_length=1)
    ticket_price: Decimal = Field(ge=0)
    additional_fees: Decimal = Field(default=Decimal("0"), ge=0, description="Per-ticket booking fee")
    available_tickets: int = Field(gt=0)
    admission_policies: str = ""
    resale_restrictions: str = ""
    refund_policies: str = ""

    def policies(self) -> dict[str, str]:
        return {
            "ticket_holder_name": self.ticket_holder_name,
            "admission_policies": self.admission_policies,
            "resale_restrictions": self.resale_restrictions,
            "refund_policies": self.refund_policies,
        }


class ConcertTicketCreate(TicketListingCreate):
    """Concert ticket listing form."""

    performer_name: str = Field(min_length=1)
    event_date: date
    event_time: str = Field(min_length=1)
    seat_number: str = ""

    @field_validator("event_date")
    @classmethod
    def not_in_past(cls, value: date) -> date:
        if value < date.today():
            raise ValueError("event date cannot be in the past")
        return value


class FestivalTicketCreate(TicketListingCreate):
    """Festival ticket listing form."""

    festival_name: str = Field(min_length=1)
    start_date: date
    end_date: date
    start_time: str = Field(min_length=1)
    end_time: str = Field(min_length=1)
    ticket_type: str = Field(min_length=1, description="e.g. General, VIP, Day Pass")

    @model_validator(mode="after")
    def check_dates(self) -> "FestivalTicketCreate":
        if self.start_date < date.today():
            raise ValueError("start date cannot be in the past")
        if self.end_date < self.start_date:
            raise ValueError("end date must be on or after the start date")
        return self


class WorkerRegistrationResponse(BaseModel):
    """Response for POST /api/worker-form."""

    message: str = "Worker details submitted successfully"
    worker: WorkerResponse


class TicketListingResponse(BaseModel):
    """Response for POST /api/tickets/{concert,festivals}."""

    message: str = "Ticket listed successfully"
    ticket: TicketResponse
