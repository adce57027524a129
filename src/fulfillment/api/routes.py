"""FastAPI routes for the Fulfillment domain."""

import json

import structlog
from fastapi import APIRouter, Body, Header, HTTPException, Response
from protean.utils.globals import current_domain

from fulfillment.api.schemas import (
    AssignDriverRequest,
    CancelDeliveryRequest,
    ConfirmDeliveryRequest,
    DeliveryAddressResponse,
    OperationalDateResponse,
    OperationalDateStatusResponse,
    OrderDetailsResponse,
    OrderResponse,
    PaymentDetailsResponse,
    PaymentWebhookRequest,
    RecordFailureRequest,
    SetOperationalDatesRequest,
    StatusResponse,
    WebhookResponse,
)
from fulfillment.gateway import get_gateway
from fulfillment.operational_date.calendar import OperationalCalendar
from fulfillment.operational_date.management import SetOperationalDates
from fulfillment.order.administration import OrderDetails, OrderPatch, OrderTracker
from fulfillment.order.assignment import (
    AssignDriver,
    CancelDelivery,
    ConfirmDelivery,
    DispatchOrder,
    RecordDeliveryFailure,
)
from fulfillment.order.placement import get_coordinator
from fulfillment.utils.dates import normalize_day

logger = structlog.get_logger(__name__)

SUCCEEDED_EVENT = "payment_intent.succeeded"


def _date_response(record) -> OperationalDateResponse:
    return OperationalDateResponse(
        date=record.date,
        is_delivery_enabled=record.is_delivery_enabled,
        notes=record.notes,
        set_by=record.set_by,
        updated_at=record.updated_at,
    )


def _order_response(order) -> OrderResponse:
    address = order.delivery_address
    payment = order.payment_details
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        customer_id=str(order.customer_id),
        package_id=str(order.package_id),
        package_name=order.package_name,
        package_price=order.package_price,
        delivery_days=order.delivery_days,
        start_date=order.start_date,
        end_date=order.end_date,
        delivery_schedule=order.delivery_schedule,
        status=order.status,
        delivery_status=order.delivery_status,
        assigned_driver_id=order.assigned_driver_id,
        delivery_sequence=order.delivery_sequence,
        proof_of_delivery_url=order.proof_of_delivery_url,
        failure_reason=order.failure_reason,
        delivery_address=DeliveryAddressResponse(**address.to_dict()) if address else None,
        payment_intent_id=order.payment_intent_id,
        payment_details=PaymentDetailsResponse(**payment.to_dict()) if payment else None,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _details_response(details: OrderDetails) -> OrderDetailsResponse:
    return OrderDetailsResponse(
        order=_order_response(details.order),
        customer=details.customer,
        package=details.package,
        driver=details.driver,
    )


# ---------------------------------------------------------------------------
# Operational Calendar Router
# ---------------------------------------------------------------------------
operational_date_router = APIRouter(prefix="/operational-dates", tags=["operational-dates"])


@operational_date_router.put("", response_model=list[OperationalDateResponse])
async def set_operational_dates(body: SetOperationalDatesRequest) -> list[OperationalDateResponse]:
    """Enable or disable deliveries on calendar days."""
    # exclude_unset keeps "notes absent" apart from "notes: null"
    entries = [entry.model_dump(exclude_unset=True) for entry in body.dates]
    command = SetOperationalDates(entries=json.dumps(entries), admin_id=body.admin_id)
    day_keys = current_domain.process(command, asynchronous=False)

    calendar = OperationalCalendar()
    return [_date_response(calendar.get_status(key)) for key in day_keys]


@operational_date_router.get("", response_model=list[OperationalDateResponse])
async def list_operational_dates(start: str, end: str) -> list[OperationalDateResponse]:
    """Configured days between two dates, inclusive."""
    records = OperationalCalendar().query_range(start, end)
    return [_date_response(record) for record in records]


@operational_date_router.get("/{day}", response_model=OperationalDateStatusResponse)
async def get_operational_date(day: str) -> OperationalDateStatusResponse:
    """A single day's delivery status. Unconfigured days report ``configured: false``."""
    calendar_day = normalize_day(day)
    record = OperationalCalendar().get_status(calendar_day)
    return OperationalDateStatusResponse(
        date=calendar_day,
        configured=record is not None,
        is_delivery_enabled=bool(record and record.is_delivery_enabled),
        record=_date_response(record) if record else None,
    )


# ---------------------------------------------------------------------------
# Payment Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/payments", response_model=WebhookResponse)
def payment_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(default=""),
) -> WebhookResponse:
    """Create the order for a successful package payment. Safe to redeliver.

    Placement blocks on geocoding, so this handler is sync and FastAPI runs it
    in its threadpool instead of on the event loop.
    """
    gateway = get_gateway()
    payload = body.model_dump()
    if not gateway.verify_webhook_signature(json.dumps(payload), x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    if body.event_type != SUCCEEDED_EVENT:
        logger.info("payment_webhook_ignored", event_type=body.event_type, payment_intent_id=body.payment_intent_id)
        return WebhookResponse(status="ignored")

    payment = gateway.parse_payment_confirmed(payload)
    order = get_coordinator().create_order_from_confirmed_payment(payment)
    return WebhookResponse(status="processed", order_id=str(order.id), order_number=order.order_number)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def list_orders() -> list[OrderResponse]:
    return [_order_response(order) for order in OrderTracker().list_orders()]


@order_router.get("/assignable", response_model=list[OrderResponse])
async def assignable_orders() -> list[OrderResponse]:
    """Geocoded orders waiting for a driver, oldest first."""
    return [_order_response(order) for order in OrderTracker().assignable_orders()]


@order_router.get("/{order_id}", response_model=OrderDetailsResponse)
async def get_order(order_id: str) -> OrderDetailsResponse:
    return _details_response(OrderTracker().get_by_id(order_id))


@order_router.patch("/{order_id}", response_model=OrderDetailsResponse)
async def update_order(order_id: str, body: dict = Body(...)) -> OrderDetailsResponse:  # noqa: B008
    """Admin patch. Unknown fields are ignored; unchanged values are not written."""
    patch = OrderPatch.from_payload(body)
    return _details_response(OrderTracker().admin_update(order_id, patch))


@order_router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str) -> Response:
    OrderTracker().delete(order_id)
    return Response(status_code=204)


@order_router.put("/{order_id}/assign", response_model=StatusResponse)
async def assign_driver(order_id: str, body: AssignDriverRequest) -> StatusResponse:
    """Assign an active driver to the order."""
    command = AssignDriver(
        order_id=order_id,
        driver_id=body.driver_id,
        delivery_sequence=body.delivery_sequence,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="driver_assigned")


@order_router.put("/{order_id}/dispatch", response_model=StatusResponse)
async def dispatch_order(order_id: str) -> StatusResponse:
    current_domain.process(DispatchOrder(order_id=order_id), asynchronous=False)
    return StatusResponse(status="out_for_delivery")


@order_router.put("/{order_id}/deliver", response_model=StatusResponse)
async def confirm_delivery(order_id: str, body: ConfirmDeliveryRequest) -> StatusResponse:
    command = ConfirmDelivery(order_id=order_id, proof_of_delivery_url=body.proof_of_delivery_url)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="delivered")


@order_router.put("/{order_id}/fail", response_model=StatusResponse)
async def record_failure(order_id: str, body: RecordFailureRequest) -> StatusResponse:
    command = RecordDeliveryFailure(order_id=order_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="failed")


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_delivery(order_id: str, body: CancelDeliveryRequest) -> StatusResponse:
    command = CancelDelivery(order_id=order_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


# ---------------------------------------------------------------------------
# Driver and Customer Routers
# ---------------------------------------------------------------------------
driver_router = APIRouter(prefix="/drivers", tags=["drivers"])
customer_router = APIRouter(prefix="/customers", tags=["customers"])


@driver_router.get("/{driver_id}/orders", response_model=list[OrderResponse])
async def driver_orders(driver_id: str, delivery_status: str | None = None) -> list[OrderResponse]:
    """A driver's route: assigned orders in delivery-sequence order."""
    orders = OrderTracker().assigned_orders(driver_id, delivery_status)
    return [_order_response(order) for order in orders]


@customer_router.get("/{customer_id}/orders", response_model=list[OrderResponse])
async def customer_orders(customer_id: str) -> list[OrderResponse]:
    return [_order_response(order) for order in OrderTracker().orders_for_customer(customer_id)]
