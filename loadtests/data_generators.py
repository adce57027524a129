"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the API's Pydantic request schemas.
"""

import random
import uuid
from datetime import date, timedelta

from faker import Faker

fake = Faker()

WEBHOOK_SIGNATURE = "test-signature"


# ---------- Operational calendar ----------


def calendar_entries(days: int = 14, start: date | None = None) -> list[dict]:
    """A run of consecutive days starting tomorrow, mostly delivery-enabled."""
    start = start or date.today() + timedelta(days=1)
    entries = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        enabled = day.weekday() < 6 and random.random() > 0.1
        entry = {"date": day.isoformat(), "is_delivery_enabled": enabled}
        if not enabled:
            entry["notes"] = random.choice(["Public holiday", "Depot closed", fake.sentence(nb_words=4)])
        entries.append(entry)
    return entries


def calendar_window(days: int = 30) -> dict:
    start = date.today()
    return {"start": start.isoformat(), "end": (start + timedelta(days=days)).isoformat()}


# ---------- Payment notifications ----------


def payment_intent_id() -> str:
    return f"pi_lt_{uuid.uuid4().hex[:16]}"


def webhook_payload(customer_id: str, package_id: str, amount: int, intent_id: str | None = None) -> dict:
    """A payment_intent.succeeded notification for a seeded customer and package."""
    return {
        "event_type": "payment_intent.succeeded",
        "payment_intent_id": intent_id or payment_intent_id(),
        "gateway_customer_id": f"cus_lt_{uuid.uuid4().hex[:8]}",
        "amount_paid": amount,
        "currency": random.choice(["usd", "USD"]),
        "metadata": {"customer_id": customer_id, "package_id": package_id},
        "card": {
            "payment_method_type": "card",
            "brand": random.choice(["visa", "mastercard", "amex"]),
            "last4": fake.credit_card_number()[-4:],
        },
    }


# ---------- Delivery outcomes ----------


def proof_of_delivery_url() -> str:
    return f"https://proof.example.com/{uuid.uuid4().hex}.jpg"


def failure_reason() -> str:
    return random.choice(["Nobody home", "Access code rejected", "Address not found", fake.sentence(nb_words=5)])
