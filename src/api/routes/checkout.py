"""Checkout API routes for Stripe integration."""

from fastapi import APIRouter, HTTPException, status

from src.schemas.checkout import CheckoutSessionCreate, CheckoutSessionResponse
from src.services.checkout_service import CheckoutService

router = APIRouter(tags=["checkout"])


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Create Stripe Checkout Session",
    description="Creates a Stripe Checkout Session for a pending order.",
)
async def create_checkout_session(data: CheckoutSessionCreate) -> CheckoutSessionResponse:
    """Create a Stripe Checkout Session for a persisted order.

    The frontend redirects to the hosted checkout page using the returned
    session. If Stripe fails the order is abandoned and a 502 is returned.

    Args:
        data: Itemized charges, metadata, order id and redirect URLs.

    Returns:
        CheckoutSessionResponse: Session id and hosted checkout URL.

    Raises:
        HTTPException: 400 if Stripe is not configured.
    """
    service = CheckoutService()

    try:
        result = await service.create_checkout_session(data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    return CheckoutSessionResponse(**result)
