"""Unit tests for worker registration and ticket listings."""

import io
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from fastapi import UploadFile
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import Headers

from src.schemas.listing import ConcertTicketCreate, FestivalTicketCreate, WorkerRegistration
from src.services.image_storage import ImageRejectedError
from src.services.listing_service import ListingService

NEXT_MONTH = date.today() + timedelta(days=30)


def make_upload(filename: str, content_type: str, content: bytes = b"\x89PNG fake image") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Supabase client that echoes inserted rows back with an id."""
    client = MagicMock()
    client.storage.from_.return_value.get_public_url.side_effect = lambda path: f"https://cdn.test/{path}"
    insert = client.table.return_value.insert
    insert.return_value.execute.side_effect = lambda: MagicMock(data=[{"id": "row-1", **insert.call_args[0][0]}])
    return client


@pytest.fixture
def mock_settings() -> MagicMock:
    settings = MagicMock()
    settings.worker_images_bucket = "worker-images"
    settings.ticket_images_bucket = "ticket-images"
    settings.listing_max_image_bytes = 1024
    return settings


@pytest.fixture
def listing_service(mock_supabase: MagicMock, mock_settings: MagicMock) -> ListingService:
    with patch("src.services.listing_service.get_supabase_client", return_value=mock_supabase), \
         patch("src.services.listing_service.get_settings", return_value=mock_settings):
        return ListingService()


@pytest.fixture
def registration() -> WorkerRegistration:
    return WorkerRegistration(
        full_name="Meena Iyer",
        phone_number="9123456780",
        worker_types='{"acRepair": false, "electricalRepair": true, "plumber": true}',
        address="4 Lake View Road",
        city="Bengaluru",
        state="Karnataka",
        country="India",
        email="meena@example.com",
        age="34",
        gender="Female",
        cost_per_hour="450",
    )


@pytest.fixture
def concert() -> ConcertTicketCreate:
    return ConcertTicketCreate(
        performer_name="Prateek Kuhad",
        event_date=NEXT_MONTH,
        event_time="19:30",
        venue="Phoenix Arena",
        seat_number="B-14",
        ticket_holder_name="Asha Rao",
        ticket_price="1500",
        additional_fees="75",
        available_tickets="2",
        refund_policies="No refunds within 48 hours",
    )


class TestWorkerRegistrationSchema:
    """Tests for the worker registration form."""

    def test_checked_boxes_become_trades(self, registration: WorkerRegistration) -> None:
        assert registration.worker_types == ["Electrician", "Plumber"]
        assert registration.cost_per_hour == Decimal("450")

    def test_requires_a_trade(self, registration: WorkerRegistration) -> None:
        fields = registration.model_dump()
        fields["worker_types"] = '{"plumber": false}'

        with pytest.raises(PydanticValidationError, match="worker_types"):
            WorkerRegistration(**fields)

    @pytest.mark.parametrize("raw", ['{"carpenter": true}', "not json"])
    def test_rejects_unknown_or_malformed_trades(self, registration: WorkerRegistration, raw: str) -> None:
        fields = registration.model_dump()
        fields["worker_types"] = raw

        with pytest.raises(PydanticValidationError):
            WorkerRegistration(**fields)

    def test_rejects_underage_worker(self, registration: WorkerRegistration) -> None:
        with pytest.raises(PydanticValidationError, match="age"):
            WorkerRegistration(**{**registration.model_dump(), "age": 15})


class TestTicketSchemas:
    """Tests for the concert and festival listing forms."""

    def test_concert_date_cannot_be_past(self, concert: ConcertTicketCreate) -> None:
        with pytest.raises(PydanticValidationError, match="past"):
            ConcertTicketCreate(**{**concert.model_dump(), "event_date": date.today() - timedelta(days=1)})

    def test_needs_tickets_to_sell(self, concert: ConcertTicketCreate) -> None:
        with pytest.raises(PydanticValidationError, match="available_tickets"):
            ConcertTicketCreate(**{**concert.model_dump(), "available_tickets": 0})

    def test_festival_must_end_after_it_starts(self) -> None:
        with pytest.raises(PydanticValidationError, match="end date"):
            FestivalTicketCreate(
                festival_name="Ziro Festival",
                start_date=NEXT_MONTH,
                end_date=NEXT_MONTH - timedelta(days=2),
                start_time="10:00",
                end_time="23:00",
                venue="Ziro Valley",
                ticket_type="Day Pass",
                ticket_holder_name="Asha Rao",
                ticket_price="2500",
                available_tickets=4,
            )


class TestRegisterWorker:
    """Tests for register_worker."""

    @pytest.mark.asyncio
    async def test_inserts_bookable_worker(
        self, listing_service: ListingService, mock_supabase: MagicMock, registration: WorkerRegistration
    ) -> None:
        """Test that the first trade and hourly rate become the catalog type and price."""
        worker = await listing_service.register_worker(registration)

        mock_supabase.table.assert_called_with("workers")
        assert worker["id"] == "row-1"
        assert worker["worker_type"] == "Electrician"
        assert worker["worker_types"] == ["Electrician", "Plumber"]
        assert worker["price"] == "450"
        assert worker["location"] == "Bengaluru, Karnataka"
        assert worker["profile_image"] is None
        mock_supabase.storage.from_.return_value.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_uploads_profile_photo(
        self, listing_service: ListingService, mock_supabase: MagicMock, registration: WorkerRegistration
    ) -> None:
        worker = await listing_service.register_worker(registration, make_upload("meena.jpg", "image/jpeg"))

        mock_supabase.storage.from_.assert_called_with("worker-images")
        path = mock_supabase.storage.from_.return_value.upload.call_args.kwargs["path"]
        assert path.startswith("worker-")
        assert worker["profile_image"] == f"https://cdn.test/{path}"

    @pytest.mark.asyncio
    async def test_rejects_non_image_photo(
        self, listing_service: ListingService, mock_supabase: MagicMock, registration: WorkerRegistration
    ) -> None:
        with pytest.raises(ImageRejectedError):
            await listing_service.register_worker(registration, make_upload("cv.pdf", "application/pdf"))

        mock_supabase.table.return_value.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_insert_removes_photo(
        self, listing_service: ListingService, mock_supabase: MagicMock, registration: WorkerRegistration
    ) -> None:
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = RuntimeError("insert failed")
        bucket = mock_supabase.storage.from_.return_value

        with pytest.raises(RuntimeError):
            await listing_service.register_worker(registration, make_upload("meena.png", "image/png"))

        bucket.remove.assert_called_once_with([bucket.upload.call_args.kwargs["path"]])


class TestCreateTickets:
    """Tests for concert and festival listings."""

    @pytest.mark.asyncio
    async def test_concert_listing_row(
        self, listing_service: ListingService, mock_supabase: MagicMock, concert: ConcertTicketCreate
    ) -> None:
        ticket = await listing_service.create_concert_ticket(concert, make_upload("gig.png", "image/png"))

        mock_supabase.table.assert_called_with("tickets")
        mock_supabase.storage.from_.assert_called_with("ticket-images")
        assert ticket["category"] == "concert"
        assert ticket["event_name"] == "Prateek Kuhad"
        assert ticket["event_date"] == NEXT_MONTH.isoformat()
        assert (ticket["price"], ticket["fees"], ticket["available_tickets"]) == ("1500", "75", 2)
        assert ticket["details"]["seat_number"] == "B-14"
        assert ticket["details"]["refund_policies"] == "No refunds within 48 hours"
        assert ticket["image"].startswith("https://cdn.test/ticket-")

    @pytest.mark.asyncio
    async def test_festival_listing_row(self, listing_service: ListingService) -> None:
        festival = FestivalTicketCreate(
            festival_name="Ziro Festival",
            start_date=NEXT_MONTH,
            end_date=NEXT_MONTH + timedelta(days=3),
            start_time="10:00",
            end_time="23:00",
            venue="Ziro Valley",
            ticket_type="Season Pass",
            ticket_holder_name="Asha Rao",
            ticket_price="2500",
            available_tickets=4,
        )

        ticket = await listing_service.create_festival_ticket(festival, make_upload("ziro.jpg", "image/jpeg"))

        assert ticket["category"] == "festivals"
        assert ticket["event_date"] == NEXT_MONTH.isoformat()
        assert ticket["details"]["end_date"] == (NEXT_MONTH + timedelta(days=3)).isoformat()
        assert ticket["details"]["ticket_type"] == "Season Pass"

    @pytest.mark.asyncio
    async def test_ticket_image_is_required(
        self, listing_service: ListingService, mock_supabase: MagicMock, concert: ConcertTicketCreate
    ) -> None:
        with pytest.raises(ImageRejectedError, match="required"):
            await listing_service.create_concert_ticket(concert, make_upload("", "application/octet-stream", b""))

        mock_supabase.table.return_value.insert.assert_not_called()
