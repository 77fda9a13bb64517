"""Order API routes."""

from fastapi import APIRouter, HTTPException, Response, status

from src.api.deps import OrderRateLimit
from src.schemas.order import OrderCreate, OrderResponse
from src.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Persists a pending order. Totals are verified against current pricing.",
)
async def create_order(
    data: OrderCreate,
    response: Response,
    _rate_limit: OrderRateLimit,
) -> OrderResponse:
    """Create a pending order from a cart snapshot.

    A repeated ``submissionId`` returns the order created by the first
    submission with status 200 instead of inserting a duplicate.

    Args:
        data: Order payload (camelCase on the wire).
        response: FastAPI response object for setting status code.

    Returns:
        OrderResponse: The persisted order, identifier in ``_id``.
    """
    service = OrderService()
    order, created = await service.create_order(data)

    if not created:
        response.status_code = status.HTTP_200_OK

    return OrderResponse.model_validate(order)


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order by ID",
)
async def get_order(order_id: str) -> OrderResponse:
    """Get a single order.

    Raises:
        HTTPException: 404 if order not found.
    """
    service = OrderService()
    order = await service.get_order(order_id)

    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )

    return OrderResponse.model_validate(order)


@router.post(
    "/{order_id}/abandon",
    response_model=OrderResponse,
    summary="Abandon a pending order",
    description="Marks a pending order as abandoned when checkout could not be started.",
)
async def abandon_order(order_id: str) -> OrderResponse:
    """Move a pending order to abandoned.

    Raises:
        NotFoundError: 404 if order not found.
        ConflictError: 409 if the order is not pending.
    """
    service = OrderService()
    order = await service.mark_abandoned(order_id)
    return OrderResponse.model_validate(order)
