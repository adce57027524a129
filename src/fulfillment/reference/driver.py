"""Delivery driver reference data."""

from enum import Enum

from protean.fields import String

from fulfillment.domain import fulfillment


class DriverStatus(Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


@fulfillment.aggregate
class Driver:
    full_name = String(required=True, max_length=200)
    phone = String(max_length=30)
    status = String(choices=DriverStatus, default=DriverStatus.ACTIVE.value)

    @property
    def is_active(self) -> bool:
        return self.status == DriverStatus.ACTIVE.value
