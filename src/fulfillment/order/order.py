"""Order aggregate — a purchased delivery package and its delivery lifecycle.

An Order is created exactly once per confirmed payment, keyed by the
payment-intent id. After creation only the delivery fields move, either
through the assignment commands or through an administrator's patch.

Delivery status flow:
    PENDING_ASSIGNMENT → ASSIGNED → OUT_FOR_DELIVERY → {DELIVERED, FAILED}
    any non-terminal status → CANCELLED

Moves off that path are applied anyway and logged as irregular, because
operations staff use them to correct mistakes.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError
from protean.fields import (
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from fulfillment.domain import fulfillment
from fulfillment.order.events import (
    DeliveryStatusChanged,
    DriverAssigned,
    OrderExpired,
    OrderPlaced,
    OrderUpdated,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    ACTIVE = "Active"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"


class DeliveryStatus(Enum):
    PENDING_ASSIGNMENT = "Pending_Assignment"
    ASSIGNED = "Assigned"
    OUT_FOR_DELIVERY = "Out_For_Delivery"
    DELIVERED = "Delivered"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING_ASSIGNMENT: {DeliveryStatus.ASSIGNED, DeliveryStatus.CANCELLED},
    DeliveryStatus.ASSIGNED: {DeliveryStatus.OUT_FOR_DELIVERY, DeliveryStatus.CANCELLED},
    DeliveryStatus.OUT_FOR_DELIVERY: {
        DeliveryStatus.DELIVERED,
        DeliveryStatus.FAILED,
        DeliveryStatus.CANCELLED,
    },
    DeliveryStatus.DELIVERED: set(),  # terminal
    DeliveryStatus.FAILED: set(),  # terminal
    DeliveryStatus.CANCELLED: set(),  # terminal
}

_DRIVER_REQUIRED = {DeliveryStatus.ASSIGNED.value, DeliveryStatus.OUT_FOR_DELIVERY.value}


def generate_order_number(placed_at: datetime) -> str:
    return f"SUB-{placed_at:%y%m%d}-{uuid4().hex[:8].upper()}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@fulfillment.value_object(part_of="Order")
class DeliveryAddress:
    """Snapshot of the customer's address at purchase time."""

    street = String(max_length=255)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    current_location = String(max_length=255)
    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)

    @property
    def is_geocoded(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@fulfillment.value_object(part_of="Order")
class PaymentDetails:
    """What the gateway reported for the payment that bought this order."""

    gateway_customer_id = String(max_length=255)
    amount_paid = Integer(required=True, min_value=0)  # minor currency units
    currency = String(required=True, max_length=3)
    payment_date = DateTime(required=True)
    payment_method_type = String(max_length=50)
    card_brand = String(max_length=50)
    card_last4 = String(max_length=4)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@fulfillment.entity(part_of="Order")
class ScheduledDelivery:
    """One planned delivery day. ``sequence`` starts at 1."""

    sequence = Integer(required=True, min_value=1)
    delivery_date = Date(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    customer_id = Identifier(required=True)
    package_id = Identifier(required=True)
    package_name = String(max_length=200)
    package_price = Float(min_value=0.0)
    delivery_days = Integer(required=True, min_value=1)
    start_date = Date()
    end_date = Date()
    scheduled_deliveries = HasMany(ScheduledDelivery)
    status = String(choices=OrderStatus, default=OrderStatus.ACTIVE.value)
    delivery_status = String(
        choices=DeliveryStatus,
        default=DeliveryStatus.PENDING_ASSIGNMENT.value,
    )
    assigned_driver_id = Identifier()
    delivery_sequence = Integer(min_value=0)
    proof_of_delivery_url = String(max_length=500)
    failure_reason = String(max_length=500)
    delivery_address = ValueObject(DeliveryAddress)
    payment_intent_id = String(required=True, max_length=255, unique=True)
    payment_details = ValueObject(PaymentDetails)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        package_id: str,
        package_name: str,
        package_price: float,
        delivery_days: int,
        schedule: list,
        delivery_address: DeliveryAddress,
        payment_details: PaymentDetails,
        payment_intent_id: str,
        placed_at: datetime | None = None,
    ):
        """Create a new, unassigned order for a confirmed payment."""
        _validate_schedule(schedule, delivery_days)
        now = placed_at or datetime.now(UTC)

        order = cls(
            order_number=generate_order_number(now),
            customer_id=customer_id,
            package_id=package_id,
            package_name=package_name,
            package_price=package_price,
            delivery_days=delivery_days,
            start_date=schedule[0],
            end_date=schedule[-1],
            status=OrderStatus.ACTIVE.value,
            delivery_status=DeliveryStatus.PENDING_ASSIGNMENT.value,
            delivery_address=delivery_address,
            payment_intent_id=payment_intent_id,
            payment_details=payment_details,
            created_at=now,
            updated_at=now,
        )
        for sequence, day in enumerate(schedule, start=1):
            order.add_scheduled_deliveries(ScheduledDelivery(sequence=sequence, delivery_date=day))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=customer_id,
                package_id=package_id,
                payment_intent_id=payment_intent_id,
                amount_paid=payment_details.amount_paid,
                currency=payment_details.currency,
                delivery_days=delivery_days,
                delivery_dates=json.dumps([day.isoformat() for day in schedule]),
                start_date=schedule[0],
                end_date=schedule[-1],
                geocoded=bool(delivery_address and delivery_address.is_geocoded),
                placed_at=now,
            )
        )
        return order

    @property
    def delivery_schedule(self) -> list:
        """Delivery dates in delivery order."""
        return [d.delivery_date for d in sorted(self.scheduled_deliveries, key=lambda d: d.sequence)]

    # -------------------------------------------------------------------
    # Delivery status transitions
    # -------------------------------------------------------------------
    def _move_delivery_status(self, target: DeliveryStatus, reason: str | None = None, now=None) -> bool:
        """Apply a delivery status change. Returns False when already there."""
        current = DeliveryStatus(self.delivery_status)
        if current == target:
            logger.info(
                "delivery_status_unchanged",
                order_id=str(self.id),
                status=current.value,
            )
            return False

        irregular = target not in _VALID_TRANSITIONS.get(current, set())
        if irregular:
            logger.warning(
                "irregular_delivery_transition",
                order_id=str(self.id),
                from_status=current.value,
                to_status=target.value,
            )

        now = now or datetime.now(UTC)
        self.delivery_status = target.value
        self.updated_at = now
        self.raise_(
            DeliveryStatusChanged(
                order_id=str(self.id),
                from_status=current.value,
                to_status=target.value,
                reason=reason,
                irregular=irregular,
                changed_at=now,
            )
        )
        return True

    def assign_driver(self, driver_id: str, delivery_sequence: int | None = None) -> None:
        """Give the order to a driver. Reassigning an assigned order keeps its status."""
        if not driver_id:
            raise ValidationError({"assigned_driver_id": ["A driver is required for assignment"]})

        now = datetime.now(UTC)
        previous = self.assigned_driver_id
        self.assigned_driver_id = driver_id
        if delivery_sequence is not None:
            self.delivery_sequence = delivery_sequence
        self.updated_at = now
        self.raise_(
            DriverAssigned(
                order_id=str(self.id),
                driver_id=driver_id,
                previous_driver_id=previous,
                delivery_sequence=self.delivery_sequence,
                assigned_at=now,
            )
        )
        self._move_delivery_status(DeliveryStatus.ASSIGNED, now=now)

    def dispatch(self) -> None:
        """The driver left with the order."""
        self._move_delivery_status(DeliveryStatus.OUT_FOR_DELIVERY)

    def confirm_delivery(self, proof_of_delivery_url: str | None = None) -> None:
        if proof_of_delivery_url:
            self.proof_of_delivery_url = proof_of_delivery_url
        self._move_delivery_status(DeliveryStatus.DELIVERED)

    def record_failure(self, reason: str) -> None:
        self.failure_reason = reason
        self._move_delivery_status(DeliveryStatus.FAILED, reason=reason)

    def cancel_delivery(self, reason: str | None = None) -> None:
        self._move_delivery_status(DeliveryStatus.CANCELLED, reason=reason)

    # -------------------------------------------------------------------
    # Order lifecycle
    # -------------------------------------------------------------------
    def expire(self, now: datetime | None = None) -> bool:
        """Mark an active order as expired. Other statuses are left alone."""
        if self.status != OrderStatus.ACTIVE.value:
            return False
        now = now or datetime.now(UTC)
        self.status = OrderStatus.EXPIRED.value
        self.updated_at = now
        self.raise_(OrderExpired(order_id=str(self.id), end_date=self.end_date, expired_at=now))
        return True

    def apply_admin_changes(self, changes: dict) -> None:
        """Write fields an administrator changed.

        ``changes`` holds only values that differ from the current state.
        Delivery status goes through the transition helper so irregular moves
        are still logged.
        """
        if not changes:
            return

        now = datetime.now(UTC)
        for field_name, value in changes.items():
            if field_name == "delivery_status":
                self._move_delivery_status(DeliveryStatus(value), reason="admin update", now=now)
            elif field_name == "delivery_address":
                self.delivery_address = DeliveryAddress(**value)
            else:
                setattr(self, field_name, value)

        if self.delivery_status in _DRIVER_REQUIRED and not self.assigned_driver_id:
            logger.warning(
                "delivery_status_without_driver",
                order_id=str(self.id),
                delivery_status=self.delivery_status,
            )

        self.updated_at = now
        self.raise_(
            OrderUpdated(
                order_id=str(self.id),
                changed_fields=json.dumps(sorted(changes)),
                updated_at=now,
            )
        )


def _validate_schedule(schedule: list, delivery_days: int) -> None:
    if not schedule:
        raise ValidationError({"delivery_schedule": ["A delivery schedule is required"]})
    if len(schedule) != delivery_days:
        raise ValidationError(
            {"delivery_schedule": [f"Expected {delivery_days} delivery dates, got {len(schedule)}"]}
        )
    if any(later <= earlier for earlier, later in zip(schedule, schedule[1:], strict=False)):
        raise ValidationError({"delivery_schedule": ["Delivery dates must be distinct and ascending"]})
