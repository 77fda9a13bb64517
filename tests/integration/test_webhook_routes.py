"""Integration tests for the Stripe webhook endpoint."""

from unittest.mock import MagicMock, patch

import stripe
from fastapi.testclient import TestClient

ORDER_ID = "660e8400-e29b-41d4-a716-446655440000"


def session_event(event_type: str, **session: object) -> dict:
    return {
        "id": "evt_123",
        "type": event_type,
        "data": {"object": {"id": "cs_test_123", "metadata": {"order_id": ORDER_ID}, **session}},
    }


class TestStripeWebhook:
    """Tests for POST /api/webhooks/stripe endpoint."""

    def test_missing_signature_is_400(self, client: TestClient) -> None:
        response = client.post("/api/webhooks/stripe", content=b"{}")

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing Stripe-Signature header"

    @patch("src.services.checkout_service.get_stripe")
    @patch("src.services.order_service.get_supabase_client")
    def test_invalid_signature_is_400(
        self, mock_order_supabase: MagicMock, mock_stripe: MagicMock, client: TestClient
    ) -> None:
        mock_stripe.return_value.Webhook.construct_event.side_effect = stripe.SignatureVerificationError(
            "No signatures found", "t=1,v1=bad"
        )

        response = client.post("/api/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "t=1,v1=bad"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid signature"

    @patch("src.services.checkout_service.get_stripe")
    @patch("src.services.order_service.get_supabase_client")
    def test_completed_session_marks_order_paid(
        self, mock_order_supabase: MagicMock, mock_stripe: MagicMock, client: TestClient
    ) -> None:
        """Test that checkout.session.completed moves the order to paid."""
        mock_stripe.return_value.Webhook.construct_event.return_value = session_event(
            "checkout.session.completed", payment_status="paid"
        )
        table = mock_order_supabase.return_value.table.return_value
        table.update.return_value.eq.return_value.execute.return_value.data = [{"id": ORDER_ID, "status": "paid"}]

        response = client.post("/api/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "t=1,v1=ok"})

        assert response.status_code == 200
        assert response.json() == {"status": "received"}
        update = table.update.call_args[0][0]
        assert update["status"] == "paid"
        assert update["stripe_checkout_session_id"] == "cs_test_123"
        table.update.return_value.eq.assert_called_once_with("id", ORDER_ID)

    @patch("src.services.checkout_service.get_stripe")
    @patch("src.services.order_service.get_supabase_client")
    def test_expired_session_abandons_pending_order(
        self, mock_order_supabase: MagicMock, mock_stripe: MagicMock, client: TestClient
    ) -> None:
        mock_stripe.return_value.Webhook.construct_event.return_value = session_event("checkout.session.expired")
        table = mock_order_supabase.return_value.table.return_value

        response = client.post("/api/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "t=1,v1=ok"})

        assert response.status_code == 200
        table.update.assert_called_once_with({"status": "abandoned"})
        table.update.return_value.eq.return_value.eq.assert_called_once_with("status", "pending")

    @patch("src.services.checkout_service.get_stripe")
    @patch("src.services.order_service.get_supabase_client")
    def test_other_events_are_acknowledged(
        self, mock_order_supabase: MagicMock, mock_stripe: MagicMock, client: TestClient
    ) -> None:
        mock_stripe.return_value.Webhook.construct_event.return_value = {"type": "invoice.paid", "data": {"object": {}}}

        response = client.post("/api/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "t=1,v1=ok"})

        assert response.status_code == 200
        mock_order_supabase.return_value.table.return_value.update.assert_not_called()
