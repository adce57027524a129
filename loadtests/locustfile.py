"""Subscription Delivery Load Testing — Locust entry point.

Run specific scenarios with Locust's class selection.

Usage:
    # Seed reference data and export the printed LOADTEST_* variables:
    python src/manage.py seed-demo

    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Webhook and delivery journeys only:
    locust -f loadtests/locustfile.py OrderDeliveryUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py OrderDeliveryUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import SeedData
from loadtests.scenarios.orders import CalendarAdminUser, DriverRouteUser, OrderDeliveryUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    if not SeedData().is_complete:
        print("[LOADTEST] LOADTEST_* seed variables missing; webhook journeys will stop immediately")
    print()


@events.test_stop.add_listener
def on_test_stop(**_kwargs):
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}\n")
