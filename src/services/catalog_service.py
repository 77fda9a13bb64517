"""Worker and ticket listing service."""

import logging
from src.core.supabase import get_supabase_client
from src.models.catalog import Ticket, Worker

logger = logging.getLogger(__name__)


class CatalogService:
    """Read access to bookable workers and ticketed events."""

    def __init__(self) -> None:
        self.client = get_supabase_client()

    async def list_workers(self, worker_type: str | None = None) -> list[Worker]:
        """List workers, optionally filtered by trade (case-insensitive)."""
        query = self.client.table("workers").select("*")
        if worker_type:
            query = query.ilike("worker_type", worker_type)
        response = query.order("created_at", desc=True).execute()
        return response.data or []

    async def get_worker(self, worker_id: str) -> Worker | None:
        response = (
            self.client.table("workers")
            .select("*")
            .eq("id", worker_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def list_tickets(self, category: str | None = None) -> list[Ticket]:
        """List events that still have tickets for sale."""
        query = self.client.table("tickets").select("*").gt("available_tickets", 0)
        if category:
            query = query.eq("category", category.lower())
        response = query.order("created_at", desc=True).execute()
        return response.data or []
