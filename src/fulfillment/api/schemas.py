"""Pydantic API schemas for the Fulfillment domain.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and domain operations.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OperationalDateEntry(BaseModel):
    date: str
    is_delivery_enabled: bool
    notes: str | None = None


class SetOperationalDatesRequest(BaseModel):
    dates: list[OperationalDateEntry] = Field(min_length=1)
    admin_id: str | None = None


class PaymentMetadata(BaseModel):
    customer_id: str
    package_id: str


class CardDetails(BaseModel):
    payment_method_type: str | None = None
    brand: str | None = None
    last4: str | None = None


class PaymentWebhookRequest(BaseModel):
    event_type: str = "payment_intent.succeeded"
    payment_intent_id: str
    gateway_customer_id: str | None = None
    amount_paid: int
    currency: str = "usd"
    metadata: PaymentMetadata
    card: CardDetails | None = None


class AssignDriverRequest(BaseModel):
    driver_id: str
    delivery_sequence: int | None = Field(default=None, ge=0)


class ConfirmDeliveryRequest(BaseModel):
    proof_of_delivery_url: str | None = None


class RecordFailureRequest(BaseModel):
    reason: str


class CancelDeliveryRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str


class OperationalDateResponse(BaseModel):
    date: date
    is_delivery_enabled: bool
    notes: str | None = None
    set_by: str | None = None
    updated_at: datetime | None = None


class OperationalDateStatusResponse(BaseModel):
    date: date
    configured: bool
    is_delivery_enabled: bool
    record: OperationalDateResponse | None = None


class DeliveryAddressResponse(BaseModel):
    street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    current_location: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class PaymentDetailsResponse(BaseModel):
    gateway_customer_id: str | None = None
    amount_paid: int
    currency: str
    payment_date: datetime | None = None
    payment_method_type: str | None = None
    card_brand: str | None = None
    card_last4: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    customer_id: str
    package_id: str
    package_name: str | None = None
    package_price: float | None = None
    delivery_days: int
    start_date: date | None = None
    end_date: date | None = None
    delivery_schedule: list[date]
    status: str
    delivery_status: str
    assigned_driver_id: str | None = None
    delivery_sequence: int | None = None
    proof_of_delivery_url: str | None = None
    failure_reason: str | None = None
    delivery_address: DeliveryAddressResponse | None = None
    payment_intent_id: str
    payment_details: PaymentDetailsResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderDetailsResponse(BaseModel):
    order: OrderResponse
    customer: dict | None = None
    package: dict | None = None
    driver: dict | None = None


class WebhookResponse(BaseModel):
    status: str
    order_id: str | None = None
    order_number: str | None = None
