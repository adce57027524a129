"""Repository for the Order aggregate."""

from datetime import date

from fulfillment.domain import fulfillment
from fulfillment.order.order import DeliveryStatus, Order, OrderStatus

_EARLIEST = "0000-01-01"


def _is_geocoded(order: Order) -> bool:
    return bool(order.delivery_address and order.delivery_address.is_geocoded)


@fulfillment.repository(part_of=Order)
class OrderRepository:
    def find_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        """The order bought by a payment intent, if one exists."""
        return self._dao.query.filter(payment_intent_id=payment_intent_id).all().first

    def list_all(self) -> list[Order]:
        """All orders, newest first."""
        orders = self._dao.query.limit(None).all().items
        return sorted(orders, key=lambda o: str(o.created_at or _EARLIEST), reverse=True)

    def for_customer(self, customer_id: str) -> list[Order]:
        orders = self._dao.query.filter(customer_id=customer_id).limit(None).all().items
        return sorted(orders, key=lambda o: str(o.created_at or _EARLIEST), reverse=True)

    def assignable(self) -> list[Order]:
        """Active, unassigned orders that have coordinates, oldest first."""
        orders = (
            self._dao.query.filter(
                status=OrderStatus.ACTIVE.value,
                delivery_status=DeliveryStatus.PENDING_ASSIGNMENT.value,
            )
            .limit(None)
            .all()
            .items
        )
        return sorted(
            (o for o in orders if _is_geocoded(o)),
            key=lambda o: str(o.created_at or _EARLIEST),
        )

    def assigned_to(self, driver_id: str, delivery_status: str | None = None) -> list[Order]:
        """A driver's geocoded orders in delivery-sequence order.

        Without a status filter only Assigned and Out_For_Delivery orders
        are returned.
        """
        wanted = (
            {delivery_status}
            if delivery_status
            else {DeliveryStatus.ASSIGNED.value, DeliveryStatus.OUT_FOR_DELIVERY.value}
        )
        orders = self._dao.query.filter(assigned_driver_id=driver_id).limit(None).all().items
        matching = [o for o in orders if o.delivery_status in wanted and _is_geocoded(o)]
        return sorted(
            matching,
            key=lambda o: (
                o.delivery_sequence is None,
                o.delivery_sequence or 0,
                str(o.created_at or _EARLIEST),
            ),
        )

    def active_ending_before(self, cutoff: date) -> list[Order]:
        """Active orders whose last delivery day is before ``cutoff``."""
        orders = self._dao.query.filter(status=OrderStatus.ACTIVE.value).limit(None).all().items
        return [o for o in orders if o.end_date is not None and o.end_date < cutoff]

    def remove(self, order: Order) -> None:
        self._dao.delete(order)
