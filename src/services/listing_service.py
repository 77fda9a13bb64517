"""Worker registration and ticket listing service."""

import logging
from typing import Any

from fastapi import UploadFile

from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.catalog import Ticket, Worker
from src.schemas.listing import ConcertTicketCreate, FestivalTicketCreate, WorkerRegistration
from src.services.image_storage import ImageRejectedError, ImageStore

logger = logging.getLogger(__name__)


class ListingService:
    """Adds workers and ticket listings to the catalog."""

    def __init__(self) -> None:
        self.client = get_supabase_client()
        self.settings = get_settings()
        self.worker_photos = ImageStore(
            self.client,
            bucket=self.settings.worker_images_bucket,
            max_bytes=self.settings.listing_max_image_bytes,
            prefix="worker",
        )
        self.ticket_images = ImageStore(
            self.client,
            bucket=self.settings.ticket_images_bucket,
            max_bytes=self.settings.listing_max_image_bytes,
            prefix="ticket",
        )

    async def _insert_with_image(
        self,
        table: str,
        row: dict[str, Any],
        image_column: str,
        store: ImageStore,
        image: UploadFile | None,
    ) -> dict[str, Any]:
        """Upload an optional image, then insert the row pointing at it.

        The image is removed again if the insert fails.
        """
        paths: list[str] = []
        if image is not None and image.filename:
            content = await store.validate(image)
            paths = store.upload_all([content], [image])
        row[image_column] = store.public_url(paths[0]) if paths else None

        try:
            response = self.client.table(table).insert(row).execute()
        except Exception:
            store.remove(paths)
            raise
        return response.data[0]

    async def register_worker(self, data: WorkerRegistration, photo: UploadFile | None = None) -> Worker:
        """Add a worker to the bookable catalog.

        The first checked trade becomes the worker's listed type and the
        hourly rate becomes the booking price.

        Raises:
            ImageRejectedError: If the profile photo is not an allowed image.
        """
        row = {
            "full_name": data.full_name,
            "phone": data.phone_number,
            "email": data.email,
            "worker_type": data.worker_types[0],
            "worker_types": data.worker_types,
            "address": data.address,
            "city": data.city,
            "state": data.state,
            "country": data.country,
            "location": f"{data.city}, {data.state}",
            "age": data.age,
            "gender": data.gender,
            "price": str(data.cost_per_hour),
            "fees": "0",
        }
        worker = await self._insert_with_image("workers", row, "profile_image", self.worker_photos, photo)
        logger.info("Worker %s registered as %s", worker["id"], ", ".join(data.worker_types))
        return worker

    async def create_concert_ticket(self, data: ConcertTicketCreate, image: UploadFile) -> Ticket:
        """List concert tickets for sale.

        Raises:
            ImageRejectedError: If the ticket image is not an allowed image.
        """
        row = {
            "event_name": data.performer_name,
            "category": "concert",
            "venue": data.venue,
            "event_date": data.event_date.isoformat(),
            "price": str(data.ticket_price),
            "fees": str(data.additional_fees),
            "available_tickets": data.available_tickets,
            "details": {**data.policies(), "event_time": data.event_time, "seat_number": data.seat_number},
        }
        return await self._create_ticket(row, image)

    async def create_festival_ticket(self, data: FestivalTicketCreate, image: UploadFile) -> Ticket:
        """List festival passes for sale.

        Raises:
            ImageRejectedError: If the ticket image is not an allowed image.
        """
        row = {
            "event_name": data.festival_name,
            "category": "festivals",
            "venue": data.venue,
            "event_date": data.start_date.isoformat(),
            "price": str(data.ticket_price),
            "fees": str(data.additional_fees),
            "available_tickets": data.available_tickets,
            "details": {
                **data.policies(),
                "end_date": data.end_date.isoformat(),
                "start_time": data.start_time,
                "end_time": data.end_time,
                "ticket_type": data.ticket_type,
            },
        }
        return await self._create_ticket(row, image)

    async def _create_ticket(self, row: dict[str, Any], image: UploadFile) -> Ticket:
        if not image.filename:
            raise ImageRejectedError("A ticket image is required")
        ticket = await self._insert_with_image("tickets", row, "image", self.ticket_images, image)
        logger.info(
            "%s ticket %s listed: %d available",
            row["category"].capitalize(),
            ticket["id"],
            row["available_tickets"],
        )
        return ticket
