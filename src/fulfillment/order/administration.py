"""Order administration — lookups, patches and deletion for operations staff.

Admin patches are allow-listed: every patchable attribute is a field of
OrderPatch, and anything else in a request is dropped and logged. A patch
only writes when at least one value actually differs from the stored order.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from uuid import UUID

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from fulfillment.order.order import DeliveryStatus, Order, OrderStatus
from fulfillment.reference.customer import Customer
from fulfillment.reference.driver import Driver
from fulfillment.reference.package import Package
from fulfillment.utils.dates import normalize_day

logger = structlog.get_logger(__name__)


# Sentinel for "not provided" in partial updates, distinct from None
UNSET = object()


# ---------------------------------------------------------------------------
# Driver references
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DriverUnset:
    """Remove the assigned driver."""


@dataclass(frozen=True)
class DriverId:
    value: str


DriverRef = DriverUnset | DriverId


def parse_driver_ref(raw) -> DriverRef:
    """Build a DriverRef from None, a bare id, or a mapping with ``id``/``_id``.

    Any other shape is rejected rather than guessed at.
    """
    if raw is None:
        return DriverUnset()
    if isinstance(raw, str):
        if not raw.strip():
            raise ValidationError({"assigned_driver": ["Driver id must not be blank"]})
        return DriverId(raw.strip())
    if isinstance(raw, Mapping):
        for key in ("id", "_id"):
            value = raw.get(key)
            if isinstance(value, str) and value.strip():
                return DriverId(value.strip())
        raise ValidationError({"assigned_driver": ["Driver object must carry a string 'id'"]})
    raise ValidationError({"assigned_driver": [f"Unsupported driver reference: {type(raw).__name__}"]})


# ---------------------------------------------------------------------------
# Patch types
# ---------------------------------------------------------------------------
_ADDRESS_FIELDS = ("street", "city", "postal_code", "current_location", "latitude", "longitude")


@dataclass(frozen=True)
class DeliveryAddressPatch:
    street: object = UNSET
    city: object = UNSET
    postal_code: object = UNSET
    current_location: object = UNSET
    latitude: object = UNSET
    longitude: object = UNSET

    @classmethod
    def from_payload(cls, payload) -> "DeliveryAddressPatch":
        if not isinstance(payload, Mapping):
            raise ValidationError({"delivery_address": ["Delivery address must be an object"]})
        values = {}
        for key, value in payload.items():
            if key not in _ADDRESS_FIELDS:
                logger.warning("unknown_patch_field_dropped", field=f"delivery_address.{key}")
                continue
            if key in ("latitude", "longitude"):
                if value is not None and (isinstance(value, bool) or not isinstance(value, int | float)):
                    raise ValidationError({f"delivery_address.{key}": ["Must be a number"]})
                values[key] = float(value) if value is not None else None
            else:
                if value is not None and not isinstance(value, str):
                    raise ValidationError({f"delivery_address.{key}": ["Must be a string"]})
                values[key] = value
        return cls(**values)

    def merged_with(self, current: dict) -> dict:
        merged = {name: current.get(name) for name in _ADDRESS_FIELDS}
        for name in _ADDRESS_FIELDS:
            value = getattr(self, name)
            if value is not UNSET:
                merged[name] = value
        return merged


@dataclass(frozen=True)
class OrderPatch:
    """Allow-listed partial update of an order. UNSET fields are left alone."""

    status: object = UNSET
    delivery_status: object = UNSET
    assigned_driver: object = UNSET  # DriverRef
    delivery_sequence: object = UNSET
    proof_of_delivery_url: object = UNSET
    delivery_address: object = UNSET  # DeliveryAddressPatch
    start_date: object = UNSET
    end_date: object = UNSET
    package_name: object = UNSET
    package_price: object = UNSET
    delivery_days: object = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping) -> "OrderPatch":
        """Validate a raw admin payload. Unknown keys are logged and dropped."""
        allowed = {f.name for f in fields(cls)}
        values = {}
        for key, value in payload.items():
            if key == "assigned_driver_id":
                key = "assigned_driver"
            if key not in allowed:
                logger.warning("unknown_patch_field_dropped", field=key)
                continue
            values[key] = _PARSERS[key](value)
        return cls(**values)

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is UNSET for f in fields(self))

    def changes_for(self, order: Order) -> dict:
        """Field values that differ from ``order``, keyed by Order attribute."""
        changes = {}
        for name in (
            "status",
            "delivery_status",
            "delivery_sequence",
            "proof_of_delivery_url",
            "start_date",
            "end_date",
            "package_name",
            "package_price",
            "delivery_days",
        ):
            value = getattr(self, name)
            if value is not UNSET and value != getattr(order, name):
                changes[name] = value

        if self.assigned_driver is not UNSET:
            driver_id = self.assigned_driver.value if isinstance(self.assigned_driver, DriverId) else None
            if driver_id != order.assigned_driver_id:
                changes["assigned_driver_id"] = driver_id

        if self.delivery_address is not UNSET:
            current = order.delivery_address.to_dict() if order.delivery_address else {}
            current = {name: current.get(name) for name in _ADDRESS_FIELDS}
            merged = self.delivery_address.merged_with(current)
            if merged != current:
                changes["delivery_address"] = merged

        return changes


def _enum_value(enum_cls, field_name):
    allowed = [member.value for member in enum_cls]

    def parse(value):
        if value not in allowed:
            raise ValidationError({field_name: [f"Must be one of: {', '.join(allowed)}"]})
        return value

    return parse


def _optional_int(field_name, min_value):
    def parse(value):
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int) or value < min_value:
            raise ValidationError({field_name: [f"Must be an integer >= {min_value}"]})
        return value

    return parse


def _required_int(field_name, min_value):
    optional = _optional_int(field_name, min_value)

    def parse(value):
        if value is None:
            raise ValidationError({field_name: ["This field cannot be cleared"]})
        return optional(value)

    return parse


def _optional_str(field_name):
    def parse(value):
        if value is not None and not isinstance(value, str):
            raise ValidationError({field_name: ["Must be a string"]})
        return value

    return parse


def _price(value):
    if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
        raise ValidationError({"package_price": ["Must be a non-negative number"]})
    return float(value)


def _day(field_name):
    def parse(value):
        return normalize_day(value, field=field_name)

    return parse


_PARSERS = {
    "status": _enum_value(OrderStatus, "status"),
    "delivery_status": _enum_value(DeliveryStatus, "delivery_status"),
    "assigned_driver": parse_driver_ref,
    "delivery_sequence": _optional_int("delivery_sequence", 0),
    "proof_of_delivery_url": _optional_str("proof_of_delivery_url"),
    "delivery_address": DeliveryAddressPatch.from_payload,
    "start_date": _day("start_date"),
    "end_date": _day("end_date"),
    "package_name": _optional_str("package_name"),
    "package_price": _price,
    "delivery_days": _required_int("delivery_days", 1),
}


# ---------------------------------------------------------------------------
# Read model
# ---------------------------------------------------------------------------
@dataclass
class OrderDetails:
    """An order with summaries of the records it references."""

    order: Order
    customer: dict | None = None
    package: dict | None = None
    driver: dict | None = None


def _find(aggregate_cls, identifier):
    if not identifier:
        return None
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        return None


def _validate_order_id(order_id) -> str:
    try:
        return str(UUID(str(order_id)))
    except (TypeError, ValueError) as exc:
        raise ValidationError({"order_id": [f"Invalid order id: {order_id!r}"]}) from exc


# ---------------------------------------------------------------------------
# Tracker service
# ---------------------------------------------------------------------------
class OrderTracker:
    def _repo(self):
        return current_domain.repository_for(Order)

    def _load(self, order_id) -> Order:
        return self._repo().get(_validate_order_id(order_id))

    def get_by_id(self, order_id) -> OrderDetails:
        return self._details(self._load(order_id))

    def admin_update(self, order_id, patch: OrderPatch) -> OrderDetails:
        """Apply an admin patch, writing only when something changed."""
        order = self._load(order_id)
        changes = patch.changes_for(order)
        if not changes:
            logger.info("admin_update_noop", order_id=str(order.id))
            return self._details(order)

        new_driver = changes.get("assigned_driver_id")
        if new_driver is not None:
            # Raises ObjectNotFoundError for unknown drivers
            driver = current_domain.repository_for(Driver).get(new_driver)
            if not driver.is_active:
                raise ValidationError({"assigned_driver": [f"Driver {driver.id} is not active"]})

        order.apply_admin_changes(changes)
        self._repo().add(order)
        logger.info("admin_update_applied", order_id=str(order.id), fields=sorted(changes))
        return self._details(self._load(order.id))

    def delete(self, order_id) -> None:
        """Hard-delete an order. Refunds and notifications are the caller's job."""
        order = self._load(order_id)
        self._repo().remove(order)
        logger.info("order_deleted", order_id=str(order.id), payment_intent_id=order.payment_intent_id)

    def list_orders(self) -> list[Order]:
        return self._repo().list_all()

    def orders_for_customer(self, customer_id: str) -> list[Order]:
        return self._repo().for_customer(customer_id)

    def assignable_orders(self) -> list[Order]:
        return self._repo().assignable()

    def assigned_orders(self, driver_id: str, delivery_status: str | None = None) -> list[Order]:
        if delivery_status is not None:
            delivery_status = _enum_value(DeliveryStatus, "delivery_status")(delivery_status)
        return self._repo().assigned_to(driver_id, delivery_status)

    @staticmethod
    def _details(order: Order) -> OrderDetails:
        customer = _find(Customer, order.customer_id)
        package = _find(Package, order.package_id)
        driver = _find(Driver, order.assigned_driver_id)
        return OrderDetails(
            order=order,
            customer=(
                {
                    "id": str(customer.id),
                    "full_name": customer.full_name,
                    "email": customer.email,
                    "phone": customer.phone,
                }
                if customer
                else None
            ),
            package=(
                {
                    "id": str(package.id),
                    "name": package.name,
                    "price": package.price,
                    "delivery_days": package.delivery_days,
                }
                if package
                else None
            ),
            driver=(
                {
                    "id": str(driver.id),
                    "full_name": driver.full_name,
                    "phone": driver.phone,
                    "status": driver.status,
                }
                if driver
                else None
            ),
        )
