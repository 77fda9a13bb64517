"""Worker and ticket listing schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class WorkerResponse(BaseModel):
    """A bookable worker."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    full_name: str
    worker_type: str
    price: Decimal = Field(ge=0)
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    profile_image: str | None = None
    location: str | None = None
    experience_years: int | None = None


class TicketResponse(BaseModel):
    """An event with tickets on sale."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    event_name: str
    category: str
    price: Decimal = Field(ge=0)
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    available_tickets: int = Field(ge=0)
    image: str | None = None
    venue: str | None = None
    event_date: str | None = None


class WorkerListResponse(BaseModel):
    workers: list[WorkerResponse]


class TicketListResponse(BaseModel):
    tickets: list[TicketResponse]
