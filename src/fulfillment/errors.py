"""Fulfillment-specific exceptions.

Validation and not-found failures use Protean's exception types so the
FastAPI integration maps them to 400 and 404 responses.
"""

from protean.exceptions import ValidationError


class SchedulingError(ValidationError):
    """The operational calendar cannot supply enough delivery days."""

    def __init__(self, requested: int, found: int, window_days: int):
        self.requested = requested
        self.found = found
        self.shortfall = requested - found
        self.window_days = window_days
        super().__init__(
            {
                "delivery_schedule": [
                    f"Only {found} of {requested} delivery days are enabled "
                    f"within the next {window_days} days"
                ]
            }
        )


class OrderFulfillmentError(Exception):
    """Unexpected failure while creating an order. Safe to retry."""

    def __init__(self, step: str, payment_intent_id: str, cause: Exception | None = None):
        self.step = step
        self.payment_intent_id = payment_intent_id
        self.cause = cause
        super().__init__(f"Order creation failed at step '{step}' for payment {payment_intent_id}")
