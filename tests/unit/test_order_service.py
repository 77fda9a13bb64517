"""Unit tests for OrderService."""

import random
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from src.api.middleware.error_handler import ConflictError, NotFoundError, ValidationError
from src.client.submission import BookingDetails, OrderSubmissionFlow
from src.schemas.cart import CartState, ServiceBooking, TicketPurchase
from src.schemas.order import OrderCreate
from src.services import cart_service
from src.services.cart_service import FeeSchedule
from src.services.order_service import OrderService

ORDER_ID = "660e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def order_service(mock_supabase: MagicMock) -> OrderService:
    """Create OrderService with mocked dependencies."""
    with patch("src.services.order_service.get_supabase_client", return_value=mock_supabase):
        return OrderService(fees=FeeSchedule())


@pytest.fixture
def order_create(service_order_payload: dict[str, Any]) -> OrderCreate:
    return OrderCreate.model_validate(service_order_payload)


def _table(mock_supabase: MagicMock) -> MagicMock:
    return mock_supabase.table.return_value


class TestOrderCreateSchema:
    """Tests for the OrderCreate wire format."""

    def test_accepts_camel_case_and_legacy_keys(self, order_create: OrderCreate) -> None:
        """Test that mobileNumber and fees are accepted as aliases."""
        assert order_create.contact_info is not None
        assert order_create.contact_info.phone == "9876543210"
        assert order_create.items[0].fee == Decimal("0")
        assert order_create.time_slots == ["10:00 AM - 12:00 PM"]

    def test_service_booking_requires_time_slot(self, service_order_payload: dict[str, Any]) -> None:
        service_order_payload["timeSlots"] = []

        with pytest.raises(ValueError, match="time slot"):
            OrderCreate.model_validate(service_order_payload)

    def test_service_booking_requires_contact_info(self, service_order_payload: dict[str, Any]) -> None:
        del service_order_payload["contactInfo"]

        with pytest.raises(ValueError, match="contactInfo"):
            OrderCreate.model_validate(service_order_payload)

    def test_service_booking_items_have_quantity_one(self, service_order_payload: dict[str, Any]) -> None:
        service_order_payload["items"][0]["quantity"] = 3

        with pytest.raises(ValueError, match="quantity of 1"):
            OrderCreate.model_validate(service_order_payload)

    def test_event_booking_needs_no_contact_info(self, service_order_payload: dict[str, Any]) -> None:
        service_order_payload["bookingType"] = "event"
        del service_order_payload["contactInfo"]
        service_order_payload["timeSlots"] = []

        order = OrderCreate.model_validate(service_order_payload)

        assert order.contact_info is None

    def test_rejects_invalid_phone(self, service_order_payload: dict[str, Any]) -> None:
        service_order_payload["contactInfo"]["mobileNumber"] = "12345"

        with pytest.raises(ValueError):
            OrderCreate.model_validate(service_order_payload)


class TestVerifyTotals:
    """Tests for server-side totals verification."""

    def test_accepts_matching_totals(self, order_service: OrderService, order_create: OrderCreate) -> None:
        order_service.verify_totals(order_create)

    def test_rejects_tampered_total(self, order_service: OrderService, order_create: OrderCreate) -> None:
        tampered = order_create.model_copy(update={"total": Decimal("100")})

        with pytest.raises(ValidationError) as exc_info:
            order_service.verify_totals(tampered)

        assert exc_info.value.status_code == 422
        assert any(d["loc"] == ["total"] for d in exc_info.value.details)

    def test_rejects_discount_without_promo(self, order_service: OrderService, order_create: OrderCreate) -> None:
        discounted = order_create.model_copy(
            update={"discount": Decimal("50"), "tax": Decimal("64.35"), "total": Decimal("559.35")}
        )

        with pytest.raises(ValidationError) as exc_info:
            order_service.verify_totals(discounted)

        assert exc_info.value.details[0]["loc"] == ["discount"]

    def test_accepts_discount_granted_by_promo(
        self, order_service: OrderService, order_create: OrderCreate
    ) -> None:
        discounted = order_create.model_copy(
            update={
                "discount": Decimal("50"),
                "tax": Decimal("64.35"),
                "total": Decimal("559.35"),
                "promo_code": "FIRST10",
            }
        )

        order_service.verify_totals(discounted)

    def test_rejects_changed_delivery_fee(self, order_service: OrderService, order_create: OrderCreate) -> None:
        cheaper = order_create.model_copy(update={"delivery_fee": Decimal("0")})

        with pytest.raises(ValidationError):
            order_service.verify_totals(cheaper)


class TestCreateOrder:
    """Tests for create_order."""

    @pytest.mark.asyncio
    async def test_inserts_pending_order(
        self,
        order_service: OrderService,
        mock_supabase: MagicMock,
        order_create: OrderCreate,
        order_row: dict[str, Any],
    ) -> None:
        """Test that a new submission is inserted with status pending."""
        _table(mock_supabase).select.return_value.eq.return_value.limit.return_value.execute.return_value.data = []
        _table(mock_supabase).insert.return_value.execute.return_value.data = [order_row]

        order, created = await order_service.create_order(order_create)

        assert created is True
        assert order["id"] == ORDER_ID
        inserted = _table(mock_supabase).insert.call_args[0][0]
        assert inserted["status"] == "pending"
        assert inserted["submission_id"] == "sub-123"
        assert inserted["contact_info"]["phone"] == "9876543210"

    @pytest.mark.asyncio
    async def test_duplicate_submission_returns_existing_order(
        self,
        order_service: OrderService,
        mock_supabase: MagicMock,
        order_create: OrderCreate,
        order_row: dict[str, Any],
    ) -> None:
        """Test that a repeated submission id does not insert a second order."""
        _table(mock_supabase).select.return_value.eq.return_value.limit.return_value.execute.return_value.data = [
            order_row
        ]

        order, created = await order_service.create_order(order_create)

        assert created is False
        assert order["id"] == ORDER_ID
        _table(mock_supabase).insert.assert_not_called()


class TestStatusTransitions:
    """Tests for abandon and payment status updates."""

    @pytest.mark.asyncio
    async def test_mark_abandoned_moves_pending_order(
        self, order_service: OrderService, mock_supabase: MagicMock, order_row: dict[str, Any]
    ) -> None:
        _table(mock_supabase).select.return_value.eq.return_value.maybe_single.return_value.execute.return_value.data = (
            order_row
        )
        _table(mock_supabase).update.return_value.eq.return_value.eq.return_value.execute.return_value.data = [
            {**order_row, "status": "abandoned"}
        ]

        order = await order_service.mark_abandoned(ORDER_ID)

        assert order["status"] == "abandoned"
        _table(mock_supabase).update.assert_called_once_with({"status": "abandoned"})

    @pytest.mark.asyncio
    async def test_mark_abandoned_rejects_paid_order(
        self, order_service: OrderService, mock_supabase: MagicMock, order_row: dict[str, Any]
    ) -> None:
        _table(mock_supabase).select.return_value.eq.return_value.maybe_single.return_value.execute.return_value.data = {
            **order_row,
            "status": "paid",
        }

        with pytest.raises(ConflictError):
            await order_service.mark_abandoned(ORDER_ID)

    @pytest.mark.asyncio
    async def test_require_pending_order_missing(self, order_service: OrderService, mock_supabase: MagicMock) -> None:
        _table(mock_supabase).select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = None

        with pytest.raises(NotFoundError):
            await order_service.require_pending_order(ORDER_ID)

    @pytest.mark.asyncio
    async def test_mark_paid_sets_paid_at(
        self, order_service: OrderService, mock_supabase: MagicMock, order_row: dict[str, Any]
    ) -> None:
        _table(mock_supabase).update.return_value.eq.return_value.execute.return_value.data = [
            {**order_row, "status": "paid"}
        ]

        order = await order_service.mark_paid(ORDER_ID, "cs_test_123")

        assert order["status"] == "paid"
        update = _table(mock_supabase).update.call_args[0][0]
        assert update["status"] == "paid"
        assert update["stripe_checkout_session_id"] == "cs_test_123"
        assert "paid_at" in update


WORKERS = (
    ServiceBooking(id="w-1", price=Decimal("500"), provider_name="Ravi Kumar", service_type="Plumber"),
    ServiceBooking(id="w-2", price=Decimal("349.99"), provider_name="Meena Iyer", service_type="Electrician"),
    ServiceBooking(id="w-3", price=Decimal("1200"), fee=Decimal("25"), provider_name="Arjun Das", service_type="Mechanic"),
)
LISTINGS = (
    TicketPurchase(id="t-1", price=Decimal("1200"), fee=Decimal("50"), event_name="Sunburn Arena", available_tickets=3),
    TicketPurchase(
        id="t-2",
        price=Decimal("799.50"),
        event_name="Ziro Festival",
        available_tickets=5,
        ticket_kind="FestivalsTicket",
    ),
)
PROMO_CODES = ("FIRST10", "welcome20", "SUPER", "NOPE", "")


def _random_step(state: CartState, rng: random.Random) -> CartState:
    """Apply one randomly chosen cart reducer."""
    action = rng.choice(("add_service", "add_ticket", "remove", "quantity", "promo", "switch"))
    category = state.active_category
    if action == "add_service":
        return cart_service.add_item(state, "service", rng.choice(WORKERS))
    if action == "add_ticket":
        listing = rng.choice(LISTINGS)
        return cart_service.add_item(state, "event", listing.model_copy(update={"quantity": rng.randint(1, 2)}))
    if action == "remove" and state.active_items:
        return cart_service.remove_item(state, category, rng.choice(state.active_items).id)
    if action == "quantity" and state.events:
        return cart_service.set_quantity(state, "event", rng.choice(state.events).id, rng.randint(-1, 6))
    if action == "promo":
        return cart_service.apply_promo_code(state, rng.choice(PROMO_CODES))
    if action == "switch":
        return cart_service.set_active_category(state, "event" if category == "service" else "service")
    return state


class TestCartsBuiltByReducers:
    """Orders priced by the cart reducers always pass server verification."""

    @pytest.fixture
    def flow(self) -> OrderSubmissionFlow:
        return OrderSubmissionFlow(MagicMock(), fees=FeeSchedule(), frontend_url="http://localhost:5173")

    @pytest.fixture
    def details(self) -> BookingDetails:
        return BookingDetails(
            location="12 MG Road, Chennai",
            date="2026-11-02",
            time_slots=("10:00 AM - 12:00 PM",),
            full_name="Asha Rao",
            phone="9876543210",
            email="asha@example.com",
        )

    def _verify_every_category(
        self,
        order_service: OrderService,
        flow: OrderSubmissionFlow,
        details: BookingDetails,
        state: CartState,
    ) -> None:
        for category in ("service", "event"):
            cart = cart_service.set_active_category(state, category)
            if not cart.active_items:
                continue
            totals = cart_service.compute_total(cart, flow.fees)
            order_service.verify_totals(flow.build_order_payload(cart, details, totals))

    @pytest.mark.parametrize("seed", range(40))
    def test_random_walk_is_accepted(
        self,
        order_service: OrderService,
        flow: OrderSubmissionFlow,
        details: BookingDetails,
        seed: int,
    ) -> None:
        rng = random.Random(seed)
        state = CartState()

        for _ in range(30):
            state = _random_step(state, rng)
            self._verify_every_category(order_service, flow, details, state)

    def test_promo_switch_between_categories_is_accepted(
        self, order_service: OrderService, flow: OrderSubmissionFlow, details: BookingDetails
    ) -> None:
        """Test WELCOME20 on services, FIRST10 on events, then back to services."""
        state = cart_service.add_item(CartState(), "service", WORKERS[0])
        state = cart_service.apply_promo_code(state, "WELCOME20")
        state = cart_service.add_item(state, "event", LISTINGS[0])
        state = cart_service.set_active_category(state, "event")
        state = cart_service.apply_promo_code(state, "FIRST10")
        state = cart_service.set_active_category(state, "service")

        totals = cart_service.compute_total(state, flow.fees)
        payload = flow.build_order_payload(state, details, totals)

        assert (payload.promo_code, payload.discount) == ("WELCOME20", Decimal("100"))
        order_service.verify_totals(payload)

    def test_removal_after_promo_is_accepted(
        self, order_service: OrderService, flow: OrderSubmissionFlow, details: BookingDetails
    ) -> None:
        state = cart_service.add_item(CartState(), "service", WORKERS[0])
        state = cart_service.add_item(state, "service", WORKERS[0].model_copy(update={"id": "w-9"}))
        state = cart_service.apply_promo_code(state, "FIRST10")
        state = cart_service.remove_item(state, "service", "w-9")

        totals = cart_service.compute_total(state, flow.fees)
        payload = flow.build_order_payload(state, details, totals)

        assert payload.discount == Decimal("50")
        order_service.verify_totals(payload)
