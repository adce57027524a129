"""Integration tests for the payment webhook."""

import threading
import time

from protean import current_domain

from fulfillment.api import routes
from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.order.placement import OrderFulfillmentCoordinator


def _orders():
    return current_domain.repository_for(Order).list_all()


class TestPaymentWebhook:
    def test_creates_order(self, webhook, mon_wed_fri):
        response = webhook()
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "processed"
        assert body["order_number"].startswith("SUB-260301-")

        order = current_domain.repository_for(Order).get(body["order_id"])
        assert order.payment_intent_id == "pi_api_001"
        assert order.payment_details.card_last4 == "4242"

    def test_redelivery_returns_same_order(self, webhook, mon_wed_fri):
        first = webhook().json()
        second = webhook().json()
        assert second["order_id"] == first["order_id"]
        assert len(_orders()) == 1

    def test_invalid_signature_rejected(self, webhook, mon_wed_fri):
        response = webhook(signature="forged")
        assert response.status_code == 401
        assert _orders() == []

    def test_other_events_are_ignored(self, webhook, mon_wed_fri):
        response = webhook(event_type="payment_intent.payment_failed")
        assert response.status_code == 200
        assert response.json()["status"] == "ignored"
        assert _orders() == []

    def test_amount_mismatch_is_a_bad_request(self, webhook, mon_wed_fri):
        response = webhook(amount_paid=100)
        assert response.status_code == 400
        assert _orders() == []

    def test_unknown_package_is_not_found(self, webhook, mon_wed_fri, customer):
        response = webhook(metadata={"customer_id": str(customer.id), "package_id": "missing"})
        assert response.status_code == 404

    def test_unschedulable_order_is_a_bad_request(self, webhook):
        response = webhook()
        assert response.status_code == 400
        assert _orders() == []


class TestWebhookUnderLoad:
    def test_slow_geocoding_does_not_stall_other_requests(
        self, client, webhook, fake_geocoder, mon_wed_fri, now, monkeypatch
    ):
        slow = OrderFulfillmentCoordinator(geocoder=fake_geocoder, geocode_timeout=3.0, clock=lambda: now)
        monkeypatch.setattr(routes, "get_coordinator", lambda: slow)
        fake_geocoder.configure(delay_seconds=1.5)
        results = {}

        def post_webhook():
            with fulfillment.domain_context():
                results["webhook"] = webhook().status_code

        with client:
            worker = threading.Thread(target=post_webhook)
            worker.start()
            time.sleep(0.3)
            started = time.monotonic()
            status = client.get("/operational-dates/2026-03-02")
            elapsed = time.monotonic() - started
            worker.join(timeout=10)

        assert status.status_code == 200
        assert elapsed < 1.0
        assert results["webhook"] == 200
        assert len(_orders()) == 1
