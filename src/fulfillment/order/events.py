"""Order domain events — immutable facts about an order's lifecycle.

All events are past tense and versioned. Lists and change sets travel as
JSON text.
"""

from protean.fields import Boolean, Date, DateTime, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Order")
class OrderPlaced:
    """A confirmed payment produced a new order with a delivery schedule."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    package_id = Identifier(required=True)
    payment_intent_id = String(required=True)
    amount_paid = Integer(required=True)
    currency = String(required=True)
    delivery_days = Integer(required=True)
    delivery_dates = Text(required=True)  # JSON list of ISO dates
    start_date = Date(required=True)
    end_date = Date(required=True)
    geocoded = Boolean(default=False)
    placed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class DriverAssigned:
    """A driver was assigned to deliver an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    previous_driver_id = Identifier()
    delivery_sequence = Integer()
    assigned_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class DeliveryStatusChanged:
    """An order's delivery status moved. ``irregular`` marks moves off the normal path."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    reason = String(max_length=500)
    irregular = Boolean(default=False)
    changed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderUpdated:
    """An administrator patched an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    changed_fields = Text(required=True)  # JSON list of field names
    updated_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderExpired:
    """An active order passed its last delivery date."""

    __version__ = 1

    order_id = Identifier(required=True)
    end_date = Date()
    expired_at = DateTime(required=True)
