"""Subscription package reference data."""

from protean.fields import Boolean, Float, Integer, String, Text

from fulfillment.domain import fulfillment


@fulfillment.aggregate
class Package:
    name = String(required=True, max_length=200)
    description = Text()
    price = Float(required=True, min_value=0.0)  # major currency units
    delivery_days = Integer(required=True, min_value=1)
    is_active = Boolean(default=True)

    @property
    def price_minor_units(self) -> int:
        return round(self.price * 100)
