"""Promo code policy lookup."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscountRule:
    """A percentage discount granted by a promo code."""

    code: str
    discount_percentage: Decimal

    def discount_for(self, subtotal: Decimal) -> Decimal:
        """Discount amount this rule grants on a subtotal."""
        return subtotal * self.discount_percentage / Decimal(100)


class PromoPolicy(Protocol):
    """Maps a promo code to the discount it grants."""

    def lookup(self, code: str) -> DiscountRule | None:
        ...


# Offers currently running on the marketplace
DEFAULT_OFFERS: tuple[DiscountRule, ...] = (
    DiscountRule(code="FIRST10", discount_percentage=Decimal("10")),
    DiscountRule(code="WELCOME20", discount_percentage=Decimal("20")),
    DiscountRule(code="SUPER", discount_percentage=Decimal("10")),
)


class StaticPromoPolicy:
    """Promo policy backed by a fixed offer table.

    Matching is an exact, case-insensitive comparison on the whole code.
    """

    def __init__(self, offers: tuple[DiscountRule, ...] = DEFAULT_OFFERS) -> None:
        self._offers = {offer.code.lower(): offer for offer in offers}

    def lookup(self, code: str) -> DiscountRule | None:
        """Find the offer for a code.

        Args:
            code: Code as typed by the customer.

        Returns:
            DiscountRule | None: The matching offer, or None.
        """
        if not code:
            return None
        rule = self._offers.get(code.lower())
        if rule is None:
            logger.debug("Unknown promo code: %s", code)
        return rule


def get_promo_policy() -> PromoPolicy:
    """Get the promo policy used by the API."""
    return StaticPromoPolicy()
