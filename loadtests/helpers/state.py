"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state. Seeded reference ids come
from the environment (see ``python src/manage.py seed-demo``).
"""

import os
from dataclasses import dataclass, field


@dataclass
class SeedData:
    """Reference records created by the seed-demo command."""

    customer_id: str = field(default_factory=lambda: os.environ.get("LOADTEST_CUSTOMER_ID", ""))
    package_id: str = field(default_factory=lambda: os.environ.get("LOADTEST_PACKAGE_ID", ""))
    package_amount: int = field(default_factory=lambda: int(os.environ.get("LOADTEST_PACKAGE_AMOUNT", "0")))
    driver_id: str = field(default_factory=lambda: os.environ.get("LOADTEST_DRIVER_ID", ""))

    @property
    def is_complete(self) -> bool:
        return bool(self.customer_id and self.package_id and self.package_amount and self.driver_id)


@dataclass
class OrderState:
    """Tracks a single order from payment notification to delivery outcome."""

    payment_intent_id: str | None = None
    order_id: str | None = None
    order_number: str | None = None
    delivery_status: str = "Pending_Assignment"
