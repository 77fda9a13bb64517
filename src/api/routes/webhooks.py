"""Stripe webhook receiver."""

import logging

from fastapi import APIRouter, Header, HTTPException, Request, status

from src.services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe", summary="Handle Stripe webhooks")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
) -> dict[str, str]:
    """Verify a Stripe event and apply it to its order.

    Completed sessions mark the order paid; expired sessions abandon a
    still-pending order. Every verified event is acknowledged with 200,
    handled or not, so Stripe stops redelivering it.
    """
    if not stripe_signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe-Signature header")

    service = CheckoutService()
    try:
        event = service.verify_webhook_signature(await request.body(), stripe_signature)
    except ValueError as e:
        logger.error("Rejected Stripe webhook: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature") from e

    handled = await service.handle_event(event)
    logger.info("Stripe event %s %s", event.get("type"), "applied" if handled else "ignored")
    return {"status": "received"}
