"""Order expiration — command and handler.

Run once a day (``python src/manage.py expire-orders``). Active orders whose
last delivery day has passed become Expired.
"""

import structlog
from protean import handle
from protean.fields import Date
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.utils.dates import utc_today

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class ExpireOrders:
    """Expire active orders that ended before ``as_of`` (default: today, UTC)."""

    as_of = Date()


@fulfillment.command_handler(part_of=Order)
class OrderExpirationHandler:
    @handle(ExpireOrders)
    def expire_orders(self, command):
        cutoff = command.as_of or utc_today()
        repo = current_domain.repository_for(Order)

        expired = 0
        for order in repo.active_ending_before(cutoff):
            if order.expire():
                repo.add(order)
                expired += 1

        logger.info("orders_expired", count=expired, cutoff=cutoff.isoformat())
        return expired
