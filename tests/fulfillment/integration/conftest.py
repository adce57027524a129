import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers

from fulfillment.api import routes
from fulfillment.gateway.fake_adapter import TEST_SIGNATURE


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.operational_date_router)
    app.include_router(routes.webhook_router)
    app.include_router(routes.order_router)
    app.include_router(routes.driver_router)
    app.include_router(routes.customer_router)
    return TestClient(app)


@pytest.fixture()
def webhook(client, coordinator, customer, package, monkeypatch):
    """POST a signed payment notification for the seeded customer and package."""
    monkeypatch.setattr(routes, "get_coordinator", lambda: coordinator)

    def _post(signature=TEST_SIGNATURE, **overrides):
        body = {
            "payment_intent_id": "pi_api_001",
            "gateway_customer_id": "cus_test_001",
            "amount_paid": 2499,
            "currency": "usd",
            "metadata": {"customer_id": str(customer.id), "package_id": str(package.id)},
            "card": {"payment_method_type": "card", "brand": "visa", "last4": "4242"},
        }
        body.update(overrides)
        return client.post("/webhooks/payments", json=body, headers={"X-Gateway-Signature": signature})

    return _post
