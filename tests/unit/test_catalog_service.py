"""Unit tests for CatalogService and the promo policy."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from src.services.catalog_service import CatalogService
from src.services.promo_service import DiscountRule, StaticPromoPolicy, get_promo_policy


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def catalog_service(mock_supabase: MagicMock) -> CatalogService:
    """Create CatalogService with mocked dependencies."""
    with patch("src.services.catalog_service.get_supabase_client", return_value=mock_supabase):
        return CatalogService()


class TestWorkers:
    """Tests for worker listing."""

    @pytest.mark.asyncio
    async def test_list_all_workers(
        self, catalog_service: CatalogService, mock_supabase: MagicMock, worker_row: dict
    ) -> None:
        query = mock_supabase.table.return_value.select.return_value
        query.order.return_value.execute.return_value.data = [worker_row]

        workers = await catalog_service.list_workers()

        assert workers == [worker_row]
        mock_supabase.table.assert_called_with("workers")
        query.ilike.assert_not_called()

    @pytest.mark.asyncio
    async def test_filter_by_trade(self, catalog_service: CatalogService, mock_supabase: MagicMock) -> None:
        query = mock_supabase.table.return_value.select.return_value
        query.ilike.return_value.order.return_value.execute.return_value.data = []

        assert await catalog_service.list_workers("plumber") == []
        query.ilike.assert_called_once_with("worker_type", "plumber")

    @pytest.mark.asyncio
    async def test_get_missing_worker(self, catalog_service: CatalogService, mock_supabase: MagicMock) -> None:
        query = mock_supabase.table.return_value.select.return_value
        query.eq.return_value.maybe_single.return_value.execute.return_value = None

        assert await catalog_service.get_worker("w-404") is None


class TestTickets:
    """Tests for ticket listing."""

    @pytest.mark.asyncio
    async def test_only_listings_with_stock(
        self, catalog_service: CatalogService, mock_supabase: MagicMock, ticket_row: dict
    ) -> None:
        query = mock_supabase.table.return_value.select.return_value
        query.gt.return_value.eq.return_value.order.return_value.execute.return_value.data = [ticket_row]

        tickets = await catalog_service.list_tickets("Festivals")

        assert tickets == [ticket_row]
        query.gt.assert_called_once_with("available_tickets", 0)
        query.gt.return_value.eq.assert_called_once_with("category", "festivals")


class TestPromoPolicy:
    """Tests for StaticPromoPolicy."""

    @pytest.mark.parametrize("code", ["FIRST10", "first10", "Welcome20", "super"])
    def test_known_codes(self, code: str) -> None:
        assert get_promo_policy().lookup(code) is not None

    @pytest.mark.parametrize("code", ["", "FIRST", "FIRST100", " FIRST10"])
    def test_unknown_codes(self, code: str) -> None:
        assert get_promo_policy().lookup(code) is None

    def test_discount_for_subtotal(self) -> None:
        rule = DiscountRule(code="WELCOME20", discount_percentage=Decimal("20"))

        assert rule.discount_for(Decimal("1250")) == Decimal("250")

    def test_custom_offer_table(self) -> None:
        policy = StaticPromoPolicy(offers=(DiscountRule(code="DIWALI", discount_percentage=Decimal("15")),))

        assert policy.lookup("diwali").discount_percentage == Decimal("15")
        assert policy.lookup("FIRST10") is None
