"""Order placement — turns a confirmed payment into exactly one Order.

Payment notifications arrive at least once, possibly concurrently. The
coordinator makes the outcome idempotent per payment intent:

1. Customer and package are loaded and the paid amount is checked.
2. An existing order for the payment intent is returned as-is.
3. The address is geocoded best-effort, outside any transaction.
4. Inside an explicit unit of work the payment intent is checked again,
   the schedule is computed and the order is stored.
5. A unique-constraint conflict on the payment intent means a concurrent
   notification won; its order is fetched and returned.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import UTC, datetime, timedelta

import structlog
from protean import UnitOfWork
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from fulfillment.errors import OrderFulfillmentError, SchedulingError
from fulfillment.gateway.port import PaymentConfirmed
from fulfillment.geocoding import geocoder_timeout, get_geocoder
from fulfillment.geocoding.port import Coordinates, Geocoder
from fulfillment.operational_date.calendar import OperationalCalendar
from fulfillment.order.order import DeliveryAddress, Order, PaymentDetails
from fulfillment.reference.customer import Customer
from fulfillment.reference.package import Package
from fulfillment.scheduling.scheduler import DeliveryDateScheduler

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class OrderFulfillmentCoordinator:
    def __init__(
        self,
        scheduler: DeliveryDateScheduler | None = None,
        geocoder: Geocoder | None = None,
        geocode_timeout: float | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.scheduler = scheduler or DeliveryDateScheduler(OperationalCalendar())
        self.geocoder = geocoder or get_geocoder()
        self.geocode_timeout = geocoder_timeout() if geocode_timeout is None else geocode_timeout
        self.clock = clock

    def create_order_from_confirmed_payment(self, payment: PaymentConfirmed) -> Order:
        """Return the order for ``payment``, creating it on first sight."""
        log = logger.bind(
            payment_intent_id=payment.payment_intent_id,
            customer_id=payment.customer_id,
            package_id=payment.package_id,
        )
        repo = current_domain.repository_for(Order)

        customer = current_domain.repository_for(Customer).get(payment.customer_id)
        package = current_domain.repository_for(Package).get(payment.package_id)
        self._verify_amount(payment, package)

        existing = repo.find_by_payment_intent(payment.payment_intent_id)
        if existing is not None:
            log.info("duplicate_payment_notification", order_id=str(existing.id))
            return existing

        address = self._address_snapshot(customer)

        step = "begin_transaction"
        uow = UnitOfWork()
        try:
            uow.start()
            repo = current_domain.repository_for(Order)

            step = "recheck_idempotency"
            existing = repo.find_by_payment_intent(payment.payment_intent_id)
            if existing is not None:
                uow.rollback()
                log.info("duplicate_payment_notification", order_id=str(existing.id))
                return existing

            step = "compute_schedule"
            now = self.clock()
            first_candidate = now.astimezone(UTC).date() + timedelta(days=1)
            schedule = self.scheduler.compute_schedule(first_candidate, package.delivery_days)

            step = "build_order"
            order = Order.place(
                customer_id=str(customer.id),
                package_id=str(package.id),
                package_name=package.name,
                package_price=package.price,
                delivery_days=package.delivery_days,
                schedule=schedule,
                delivery_address=address,
                payment_details=PaymentDetails(
                    gateway_customer_id=payment.gateway_customer_id or customer.gateway_customer_id,
                    amount_paid=payment.amount_paid,
                    currency=payment.currency.lower(),
                    payment_date=now,
                    payment_method_type=payment.card.payment_method_type,
                    card_brand=payment.card.card_brand,
                    card_last4=payment.card.card_last4,
                ),
                payment_intent_id=payment.payment_intent_id,
                placed_at=now,
            )

            step = "persist_order"
            repo.add(order)

            step = "commit"
            uow.commit()
        except SchedulingError:
            self._rollback(uow)
            log.warning("order_not_schedulable", delivery_days=package.delivery_days)
            raise
        except Exception as exc:
            self._rollback(uow)
            winner = repo.find_by_payment_intent(payment.payment_intent_id)
            if winner is not None:
                log.info("concurrent_payment_notification", order_id=str(winner.id), step=step)
                return winner
            log.error("order_creation_failed", step=step, error=str(exc))
            if isinstance(exc, ValidationError):
                raise
            raise OrderFulfillmentError(step, payment.payment_intent_id, cause=exc) from exc

        log.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            start_date=order.start_date.isoformat(),
            end_date=order.end_date.isoformat(),
            geocoded=address.is_geocoded,
        )
        return order

    @staticmethod
    def _verify_amount(payment: PaymentConfirmed, package: Package) -> None:
        expected = package.price_minor_units
        if payment.amount_paid != expected:
            logger.warning(
                "payment_amount_mismatch",
                payment_intent_id=payment.payment_intent_id,
                expected=expected,
                paid=payment.amount_paid,
            )
            raise ValidationError(
                {"amount_paid": [f"Amount mismatch: expected {expected}, received {payment.amount_paid}"]}
            )

    def _address_snapshot(self, customer: Customer) -> DeliveryAddress:
        fields = {
            "street": customer.address,
            "city": customer.city,
            "postal_code": customer.postal_code,
            "current_location": customer.current_location,
        }
        coordinates = self._geocode(customer.address_line(), customer_id=str(customer.id))
        if coordinates is not None:
            fields["latitude"] = coordinates.latitude
            fields["longitude"] = coordinates.longitude
        return DeliveryAddress(**fields)

    def _geocode(self, address_line: str, customer_id: str) -> Coordinates | None:
        """Best-effort geocoding bounded by the configured timeout."""
        if not address_line:
            logger.warning("geocoding_skipped", customer_id=customer_id, reason="empty address")
            return None

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self.geocoder.geocode, address_line, self.geocode_timeout)
        try:
            coordinates = future.result(timeout=self.geocode_timeout)
        except FutureTimeoutError:
            logger.warning("geocoding_timed_out", customer_id=customer_id, timeout=self.geocode_timeout)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.warning("geocoding_failed", customer_id=customer_id, error=str(exc))
            return None
        finally:
            executor.shutdown(wait=False)

        if coordinates is None:
            logger.warning("geocoding_no_match", customer_id=customer_id)
        return coordinates

    @staticmethod
    def _rollback(uow: UnitOfWork) -> None:
        if uow.in_progress:
            uow.rollback()


def get_coordinator() -> OrderFulfillmentCoordinator:
    """Coordinator wired to the configured adapters."""
    return OrderFulfillmentCoordinator()

