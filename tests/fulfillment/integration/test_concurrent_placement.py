"""Concurrent payment notifications against a store with a unique index.

The memory provider checks unique fields in-process, so these tests swap the
default provider for a file-backed SQLite database for their duration.
"""

import threading

import pytest
from protean import current_domain
from protean.port.provider import registry

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.utils.db import drop_db, setup_db

THREADS = 4


@pytest.fixture()
def sqlite_store(tmp_path):
    """Point the default provider at SQLite for one test."""
    original = fulfillment.providers["default"]
    conn_info = {"provider": "sqlite", "database_uri": f"sqlite:///{tmp_path / 'fulfillment.db'}"}
    provider = registry.get("sqlite")("default", fulfillment, conn_info)
    fulfillment.providers["default"] = provider
    setup_db(fulfillment)

    yield provider

    drop_db(fulfillment)
    provider.close()
    fulfillment.providers["default"] = original


def _race(coordinator, payment, threads=THREADS):
    barrier = threading.Barrier(threads)
    order_ids, errors = [], []
    lock = threading.Lock()

    def place():
        with fulfillment.domain_context():
            barrier.wait()
            try:
                order = coordinator.create_order_from_confirmed_payment(payment)
            except Exception as exc:  # noqa: BLE001
                with lock:
                    errors.append(exc)
                return
            with lock:
                order_ids.append(str(order.id))

    workers = [threading.Thread(target=place) for _ in range(threads)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=30)
    return order_ids, errors


def _orders_for(payment_intent_id):
    return current_domain.repository_for(Order)._dao.query.filter(payment_intent_id=payment_intent_id).all().items


class TestConcurrentNotifications:
    def test_simultaneous_notifications_create_one_order(self, sqlite_store, coordinator, make_payment, mon_wed_fri):
        payment = make_payment(payment_intent_id="pi_race_001")

        order_ids, errors = _race(coordinator, payment)

        assert errors == []
        assert len(order_ids) == THREADS
        assert len(set(order_ids)) == 1
        stored = _orders_for("pi_race_001")
        assert [str(o.id) for o in stored] == order_ids[:1]

    def test_distinct_intents_race_independently(self, sqlite_store, coordinator, make_payment, mon_wed_fri):
        first, first_errors = _race(coordinator, make_payment(payment_intent_id="pi_race_a"), threads=2)
        second, second_errors = _race(coordinator, make_payment(payment_intent_id="pi_race_b"), threads=2)

        assert first_errors == second_errors == []
        assert len(set(first)) == 1
        assert len(set(second)) == 1
        assert set(first) != set(second)
        assert len(_orders_for("pi_race_a")) == len(_orders_for("pi_race_b")) == 1
