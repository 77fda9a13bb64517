"""Worker registration and ticket listing API routes."""

from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.api.middleware.error_handler import ValidationError
from src.schemas.catalog import TicketResponse, WorkerResponse
from src.schemas.listing import (
    ConcertTicketCreate,
    FestivalTicketCreate,
    TicketListingResponse,
    WorkerRegistration,
    WorkerRegistrationResponse,
)
from src.services.image_storage import ImageRejectedError
from src.services.listing_service import ListingService

router = APIRouter(tags=["listings"])

FormModel = TypeVar("FormModel", bound=BaseModel)


def _parse_form(model: type[FormModel], **fields: Any) -> FormModel:
    """Validate multipart fields against a form schema.

    Raises:
        ValidationError: 422 with one detail per invalid field.
    """
    try:
        return model(**fields)
    except PydanticValidationError as e:
        details = [
            {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
            for error in e.errors(include_url=False)
        ]
        raise ValidationError("Form is invalid", details=details) from e


def _image_rejected(e: ImageRejectedError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/worker-form",
    response_model=WorkerRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a worker",
    description="Multipart worker registration with an optional profile photo. "
    "workerTypes is a JSON map of trade checkboxes.",
)
async def register_worker(
    full_name: Annotated[str, Form(alias="fullName")],
    phone_number: Annotated[str, Form(alias="phoneNumber")],
    worker_types: Annotated[str, Form(alias="workerTypes")],
    address: Annotated[str, Form()],
    city: Annotated[str, Form()],
    state: Annotated[str, Form()],
    country: Annotated[str, Form()],
    email: Annotated[str, Form()],
    age: Annotated[str, Form()],
    gender: Annotated[str, Form()],
    cost_per_hour: Annotated[str, Form(alias="costPerHour")],
    profile_photo: Annotated[UploadFile | None, File(alias="profilePhoto")] = None,
) -> WorkerRegistrationResponse:
    """Add a worker to the catalog.

    Raises:
        ValidationError: 422 if a form field is invalid.
        HTTPException: 400 if the profile photo is rejected.
    """
    data = _parse_form(
        WorkerRegistration,
        full_name=full_name,
        phone_number=phone_number,
        worker_types=worker_types,
        address=address,
        city=city,
        state=state,
        country=country,
        email=email,
        age=age,
        gender=gender,
        cost_per_hour=cost_per_hour,
    )

    service = ListingService()
    try:
        worker = await service.register_worker(data, profile_photo)
    except ImageRejectedError as e:
        raise _image_rejected(e) from e

    return WorkerRegistrationResponse(worker=WorkerResponse(**worker))


@router.post(
    "/tickets/concert",
    response_model=TicketListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List concert tickets",
)
async def create_concert_ticket(
    performer_name: Annotated[str, Form(alias="performerName")],
    event_date: Annotated[str, Form(alias="eventDate")],
    event_time: Annotated[str, Form(alias="eventTime")],
    venue: Annotated[str, Form()],
    ticket_holder_name: Annotated[str, Form(alias="ticketHolderName")],
    ticket_price: Annotated[str, Form(alias="ticketPrice")],
    available_tickets: Annotated[str, Form(alias="availableTickets")],
    ticket_image: Annotated[UploadFile, File(alias="ticketImage")],
    seat_number: Annotated[str, Form(alias="seatNumber")] = "",
    additional_fees: Annotated[str, Form(alias="additionalFees")] = "0",
    admission_policies: Annotated[str, Form(alias="admissionPolicies")] = "",
    resale_restrictions: Annotated[str, Form(alias="resaleRestrictions")] = "",
    refund_policies: Annotated[str, Form(alias="refundPolicies")] = "",
) -> TicketListingResponse:
    """Put concert tickets on sale.

    Raises:
        ValidationError: 422 if a form field is invalid or the date has passed.
        HTTPException: 400 if the ticket image is missing or rejected.
    """
    data = _parse_form(
        ConcertTicketCreate,
        performer_name=performer_name,
        event_date=event_date,
        event_time=event_time,
        venue=venue,
        seat_number=seat_number,
        ticket_holder_name=ticket_holder_name,
        ticket_price=ticket_price,
        additional_fees=additional_fees or "0",
        available_tickets=available_tickets,
        admission_policies=admission_policies,
        resale_restrictions=resale_restrictions,
        refund_policies=refund_policies,
    )

    service = ListingService()
    try:
        ticket = await service.create_concert_ticket(data, ticket_image)
    except ImageRejectedError as e:
        raise _image_rejected(e) from e

    return TicketListingResponse(ticket=TicketResponse(**ticket))


@router.post(
    "/tickets/festivals",
    response_model=TicketListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List festival passes",
)
async def create_festival_ticket(
    festival_name: Annotated[str, Form(alias="festivalName")],
    start_date: Annotated[str, Form(alias="startDate")],
    end_date: Annotated[str, Form(alias="endDate")],
    start_time: Annotated[str, Form(alias="startTime")],
    end_time: Annotated[str, Form(alias="endTime")],
    venue: Annotated[str, Form()],
    ticket_type: Annotated[str, Form(alias="ticketType")],
    ticket_holder_name: Annotated[str, Form(alias="ticketHolderName")],
    ticket_price: Annotated[str, Form(alias="ticketPrice")],
    available_tickets: Annotated[str, Form(alias="availableTickets")],
    ticket_image: Annotated[UploadFile, File(alias="ticketImage")],
    additional_fees: Annotated[str, Form(alias="additionalFees")] = "0",
    admission_policies: Annotated[str, Form(alias="admissionPolicies")] = "",
    resale_restrictions: Annotated[str, Form(alias="resaleRestrictions")] = "",
    refund_policies: Annotated[str, Form(alias="refundPolicies")] = "",
) -> TicketListingResponse:
    """Put festival passes on sale.

    Raises:
        ValidationError: 422 if a form field is invalid or the dates are out of order.
        HTTPException: 400 if the ticket image is missing or rejected.
    """
    data = _parse_form(
        FestivalTicketCreate,
        festival_name=festival_name,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        venue=venue,
        ticket_type=ticket_type,
        ticket_holder_name=ticket_holder_name,
        ticket_price=ticket_price,
        additional_fees=additional_fees or "0",
        available_tickets=available_tickets,
        admission_policies=admission_policies,
        resale_restrictions=resale_restrictions,
        refund_policies=refund_policies,
    )

    service = ListingService()
    try:
        ticket = await service.create_festival_ticket(data, ticket_image)
    except ImageRejectedError as e:
        raise _image_rejected(e) from e

    return TicketListingResponse(ticket=TicketResponse(**ticket))
