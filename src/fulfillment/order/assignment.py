"""Delivery assignment — commands and handler.

Moves an order through driver assignment, dispatch and the delivery
outcome. The handler loads the driver for assignments so only existing,
active drivers receive orders.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.reference.driver import Driver


@fulfillment.command(part_of="Order")
class AssignDriver:
    """Assign an active driver to an order."""

    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    delivery_sequence = Integer(min_value=0)


@fulfillment.command(part_of="Order")
class DispatchOrder:
    """The assigned driver is out delivering the order."""

    order_id = Identifier(required=True)


@fulfillment.command(part_of="Order")
class ConfirmDelivery:
    """The order reached the customer."""

    order_id = Identifier(required=True)
    proof_of_delivery_url = String(max_length=500)


@fulfillment.command(part_of="Order")
class RecordDeliveryFailure:
    """The delivery attempt failed."""

    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@fulfillment.command(part_of="Order")
class CancelDelivery:
    """Stop delivering the order."""

    order_id = Identifier(required=True)
    reason = String(max_length=500)


@fulfillment.command_handler(part_of=Order)
class DeliveryAssignmentHandler:
    @handle(AssignDriver)
    def assign_driver(self, command):
        driver = current_domain.repository_for(Driver).get(command.driver_id)
        if not driver.is_active:
            raise ValidationError({"driver_id": [f"Driver {driver.id} is not active"]})

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assign_driver(str(driver.id), delivery_sequence=command.delivery_sequence)
        repo.add(order)

    @handle(DispatchOrder)
    def dispatch(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.dispatch()
        repo.add(order)

    @handle(ConfirmDelivery)
    def confirm_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm_delivery(command.proof_of_delivery_url)
        repo.add(order)

    @handle(RecordDeliveryFailure)
    def record_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_failure(command.reason)
        repo.add(order)

    @handle(CancelDelivery)
    def cancel_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel_delivery(command.reason)
        repo.add(order)
