"""Order fulfillment load test scenarios.

Journeys covering calendar administration, order creation from payment
notifications (including redelivered notifications), and the driver
delivery lifecycle. Webhook journeys need the ids printed by
``python src/manage.py seed-demo`` exported as LOADTEST_* variables.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    WEBHOOK_SIGNATURE,
    calendar_entries,
    calendar_window,
    failure_reason,
    payment_intent_id,
    proof_of_delivery_url,
    webhook_payload,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState, SeedData

SIGNED = {"X-Gateway-Signature": WEBHOOK_SIGNATURE}


class OrderDeliveryJourney(SequentialTaskSet):
    """Payment webhook -> Redelivery -> Assign -> Dispatch -> Deliver or Fail."""

    def on_start(self):
        self.seed = SeedData()
        self.state = OrderState()
        if not self.seed.is_complete:
            self.interrupt(reschedule=False)

    @task
    def receive_payment(self):
        self.state.payment_intent_id = payment_intent_id()
        payload = webhook_payload(
            self.seed.customer_id, self.seed.package_id, self.seed.package_amount, self.state.payment_intent_id
        )
        with self.client.post(
            "/webhooks/payments",
            json=payload,
            headers=SIGNED,
            catch_response=True,
            name="POST /webhooks/payments",
        ) as resp:
            if resp.status_code == 200 and resp.json().get("status") == "processed":
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["order_number"]
            else:
                resp.failure(f"Payment webhook failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def redeliver_payment(self):
        payload = webhook_payload(
            self.seed.customer_id, self.seed.package_id, self.seed.package_amount, self.state.payment_intent_id
        )
        with self.client.post(
            "/webhooks/payments",
            json=payload,
            headers=SIGNED,
            catch_response=True,
            name="POST /webhooks/payments [redelivery]",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Redelivery failed: {resp.status_code} {extract_error_detail(resp)}")
            elif resp.json().get("order_id") != self.state.order_id:
                resp.failure(f"Redelivery created a second order for {self.state.payment_intent_id}")

    @task
    def view_order(self):
        self.client.get(f"/orders/{self.state.order_id}", name="GET /orders/{id}")

    @task
    def assign_driver(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/assign",
            json={"driver_id": self.seed.driver_id, "delivery_sequence": random.randint(1, 40)},
            catch_response=True,
            name="PUT /orders/{id}/assign",
        ) as resp:
            if resp.status_code == 200:
                self.state.delivery_status = "Assigned"
            else:
                resp.failure(f"Assign failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def dispatch(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/dispatch",
            catch_response=True,
            name="PUT /orders/{id}/dispatch",
        ) as resp:
            if resp.status_code == 200:
                self.state.delivery_status = "Out_For_Delivery"
            else:
                resp.failure(f"Dispatch failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def outcome(self):
        if random.random() < 0.9:
            path, body, name = "deliver", {"proof_of_delivery_url": proof_of_delivery_url()}, "deliver"
        else:
            path, body, name = "fail", {"reason": failure_reason()}, "fail"
        with self.client.put(
            f"/orders/{self.state.order_id}/{path}",
            json=body,
            catch_response=True,
            name=f"PUT /orders/{{id}}/{name}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Outcome failed: {resp.status_code} {extract_error_detail(resp)}")
        self.interrupt()


class WebhookRedeliveryStorm(SequentialTaskSet):
    """The same notification delivered repeatedly must yield one order."""

    def on_start(self):
        self.seed = SeedData()
        if not self.seed.is_complete:
            self.interrupt(reschedule=False)

    @task
    def storm(self):
        intent = payment_intent_id()
        first_order_id = None
        for _ in range(random.randint(3, 8)):
            payload = webhook_payload(self.seed.customer_id, self.seed.package_id, self.seed.package_amount, intent)
            with self.client.post(
                "/webhooks/payments",
                json=payload,
                headers=SIGNED,
                catch_response=True,
                name="POST /webhooks/payments [storm]",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Storm delivery failed: {resp.status_code} {extract_error_detail(resp)}")
                    continue
                order_id = resp.json().get("order_id")
                first_order_id = first_order_id or order_id
                if order_id != first_order_id:
                    resp.failure(f"Storm created a second order for {intent}")
        self.interrupt()


class OrderDeliveryUser(HttpUser):
    wait_time = between(1, 3)
    tasks = {OrderDeliveryJourney: 4, WebhookRedeliveryStorm: 1}


class CalendarAdminUser(HttpUser):
    """Administrators editing and reading the operational calendar."""

    wait_time = between(2, 5)

    @task(1)
    def set_dates(self):
        with self.client.put(
            "/operational-dates",
            json={"dates": calendar_entries(), "admin_id": "loadtest-admin"},
            catch_response=True,
            name="PUT /operational-dates",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Set dates failed: {resp.status_code} {extract_error_detail(resp)}")

    @task(3)
    def query_window(self):
        self.client.get("/operational-dates", params=calendar_window(), name="GET /operational-dates")

    @task(2)
    def day_status(self):
        day = calendar_entries(days=1)[0]["date"]
        self.client.get(f"/operational-dates/{day}", name="GET /operational-dates/{day}")


class DriverRouteUser(HttpUser):
    """Dispatchers and drivers polling their work lists."""

    wait_time = between(1, 4)

    def on_start(self):
        self.seed = SeedData()

    @task(2)
    def assignable(self):
        self.client.get("/orders/assignable", name="GET /orders/assignable")

    @task(3)
    def driver_route(self):
        if self.seed.driver_id:
            self.client.get(f"/drivers/{self.seed.driver_id}/orders", name="GET /drivers/{id}/orders")
