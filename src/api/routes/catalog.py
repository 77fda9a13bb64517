"""Worker and ticket listing API routes."""

from fastapi import APIRouter, HTTPException, Query, status

from src.schemas.catalog import (
    TicketListResponse,
    TicketResponse,
    WorkerListResponse,
    WorkerResponse,
)
from src.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


@router.get(
    "/workers",
    response_model=WorkerListResponse,
    summary="List workers",
    description="Bookable workers, optionally filtered by trade (plumber, mechanic ...).",
)
async def list_workers(
    worker_type: str | None = Query(default=None, description="Filter by worker type"),
) -> WorkerListResponse:
    service = CatalogService()
    workers = await service.list_workers(worker_type)
    return WorkerListResponse(workers=[WorkerResponse(**worker) for worker in workers])


@router.get(
    "/workers/{worker_id}",
    response_model=WorkerResponse,
    summary="Get worker by ID",
)
async def get_worker(worker_id: str) -> WorkerResponse:
    """Get a single worker.

    Raises:
        HTTPException: 404 if worker not found.
    """
    service = CatalogService()
    worker = await service.get_worker(worker_id)

    if not worker:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worker not found",
        )

    return WorkerResponse(**worker)


@router.get(
    "/tickets",
    response_model=TicketListResponse,
    summary="List event tickets",
    description="Events with tickets still on sale, optionally filtered by category.",
)
async def list_tickets(
    category: str | None = Query(default=None, description="concert, theater, sports or festivals"),
) -> TicketListResponse:
    service = CatalogService()
    tickets = await service.list_tickets(category)
    return TicketListResponse(tickets=[TicketResponse(**ticket) for ticket in tickets])
