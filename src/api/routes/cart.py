"""Cart pricing API routes."""

from fastapi import APIRouter, HTTPException, status

from src.schemas.cart import CartQuoteRequest, CartTotals, PromoCodeResponse
from src.services.cart_service import FeeSchedule, compute_total
from src.services.promo_service import get_promo_policy

router = APIRouter(tags=["cart"])


@router.post(
    "/cart/quote",
    response_model=CartTotals,
    summary="Price a cart",
    description="Server-computed totals for one category of a cart, the active one by default.",
)
async def quote_cart(data: CartQuoteRequest) -> CartTotals:
    return compute_total(data.cart, FeeSchedule.from_settings(), data.category)


@router.get(
    "/promo-codes/{code}",
    response_model=PromoCodeResponse,
    summary="Look up a promo code",
)
async def get_promo_code(code: str) -> PromoCodeResponse:
    """Return the discount a promo code grants.

    Raises:
        HTTPException: 404 if the code is unknown.
    """
    rule = get_promo_policy().lookup(code)

    if rule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid promo code",
        )

    return PromoCodeResponse(code=rule.code, discount_percentage=rule.discount_percentage)
