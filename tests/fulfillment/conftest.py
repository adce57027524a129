from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain

from fulfillment.gateway import reset_gateway
from fulfillment.gateway.port import CardMetadata, PaymentConfirmed
from fulfillment.geocoding import reset_geocoder, set_geocoder
from fulfillment.geocoding.fake_adapter import FakeGeocoder
from fulfillment.operational_date.calendar import OperationalCalendar
from fulfillment.order.placement import OrderFulfillmentCoordinator
from fulfillment.reference.customer import Customer
from fulfillment.reference.driver import Driver, DriverStatus
from fulfillment.reference.package import Package

# Sunday 1 March 2026, mid-morning UTC
FIXED_NOW = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def _fulfillment_domain():
    """Initialize the fulfillment domain once per session."""
    from fulfillment.domain import fulfillment

    fulfillment.init()
    return fulfillment


@pytest.fixture(scope="session", autouse=True)
def setup_db(_fulfillment_domain):
    from fulfillment.utils.db import drop_db, setup_db

    setup_db(_fulfillment_domain)

    yield

    drop_db(_fulfillment_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_fulfillment_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _fulfillment_domain.domain_context()
    ctx.push()

    yield

    reset_geocoder()
    reset_gateway()

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer():
    record = Customer(
        full_name="Ada Lovelace",
        email="ada@example.com",
        phone="+44 20 7946 0000",
        address="12 Analytical Way",
        city="London",
        postal_code="N1 9GU",
        current_location="Flat 3, ring twice",
        gateway_customer_id="cus_test_001",
    )
    current_domain.repository_for(Customer).add(record)
    return record


@pytest.fixture()
def package():
    record = Package(name="Weekly Greens", price=24.99, delivery_days=3)
    current_domain.repository_for(Package).add(record)
    return record


@pytest.fixture()
def driver():
    record = Driver(full_name="Dan Driver", phone="+44 7700 900000", status=DriverStatus.ACTIVE.value)
    current_domain.repository_for(Driver).add(record)
    return record


@pytest.fixture()
def inactive_driver():
    record = Driver(full_name="Ivy Idle", status=DriverStatus.INACTIVE.value)
    current_domain.repository_for(Driver).add(record)
    return record


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------
@pytest.fixture()
def now():
    return FIXED_NOW


@pytest.fixture()
def enable_days():
    """Mark days as delivery-enabled (or disabled) in the operational calendar."""

    def _enable(days, enabled=True):
        entries = [{"date": day.isoformat(), "is_delivery_enabled": enabled} for day in days]
        return OperationalCalendar().upsert_many(entries, admin_id="admin-test")

    return _enable


@pytest.fixture()
def mon_wed_fri(enable_days):
    """Mondays, Wednesdays and Fridays enabled for the 90 days after FIXED_NOW."""
    start = FIXED_NOW.date()
    days = [start + timedelta(days=i) for i in range(1, 91)]
    enable_days([d for d in days if d.weekday() in (0, 2, 4)])
    return days


@pytest.fixture()
def every_day(enable_days):
    start = FIXED_NOW.date()
    enable_days([start + timedelta(days=i) for i in range(0, 91)])


# ---------------------------------------------------------------------------
# Order placement
# ---------------------------------------------------------------------------
@pytest.fixture()
def fake_geocoder():
    geocoder = FakeGeocoder()
    set_geocoder(geocoder)
    return geocoder


@pytest.fixture()
def coordinator(fake_geocoder):
    return OrderFulfillmentCoordinator(
        geocoder=fake_geocoder,
        geocode_timeout=0.5,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture()
def make_payment(customer, package):
    """Build a confirmed payment for the seeded customer and package."""

    def _make(**overrides):
        values = {
            "customer_id": str(customer.id),
            "package_id": str(package.id),
            "payment_intent_id": "pi_test_001",
            "gateway_customer_id": "cus_test_001",
            "amount_paid": 2499,
            "currency": "USD",
            "card": CardMetadata(payment_method_type="card", card_brand="visa", card_last4="4242"),
        }
        values.update(overrides)
        return PaymentConfirmed(**values)

    return _make

@pytest.fixture()
def placed_order(coordinator, make_payment, mon_wed_fri):
    """A geocoded, unassigned order created through the coordinator."""
    return coordinator.create_order_from_confirmed_payment(make_payment())
