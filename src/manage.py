"""Subscription delivery management CLI.

Provides database schema commands, the daily order expiration job and
demo data for local runs and load tests.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py expire-orders                  # Expire orders that ended before today
    python src/manage.py expire-orders --as-of 2026-03-01
    python src/manage.py seed-demo                      # Demo customer, package, driver and calendar
"""

import argparse
import sys


def setup_databases():
    """Create database schemas for the fulfillment domain."""
    from fulfillment.domain import fulfillment
    from fulfillment.utils.db import setup_db

    print("Initializing fulfillment domain...")
    fulfillment.init()
    print("Creating fulfillment database schema...")
    setup_db(fulfillment)
    print("Done.")


def drop_databases():
    """Drop database schemas for the fulfillment domain."""
    from fulfillment.domain import fulfillment
    from fulfillment.utils.db import drop_db

    print("Initializing fulfillment domain...")
    fulfillment.init()
    print("Dropping fulfillment database schema...")
    drop_db(fulfillment)
    print("Done.")


def expire_orders(as_of=None) -> int:
    """Move active orders whose last delivery day has passed to Expired."""
    from fulfillment.domain import fulfillment
    from fulfillment.order.expiration import ExpireOrders
    from fulfillment.utils.dates import normalize_day
    from fulfillment.utils.logging import configure_logging

    configure_logging()
    fulfillment.init()
    with fulfillment.domain_context():
        command = ExpireOrders(as_of=normalize_day(as_of, field="as_of") if as_of else None)
        count = fulfillment.process(command, asynchronous=False)
    print(f"Expired {count} order(s).")
    return count


def seed_demo(days=90):
    """Create a customer, package and driver and enable weekdays for ``days`` days.

    Prints the ids as LOADTEST_* environment assignments.
    """
    from datetime import timedelta

    from fulfillment.domain import fulfillment
    from fulfillment.operational_date.calendar import OperationalCalendar
    from fulfillment.reference.customer import Customer
    from fulfillment.reference.driver import Driver, DriverStatus
    from fulfillment.reference.package import Package
    from fulfillment.utils.dates import utc_today
    from fulfillment.utils.logging import configure_logging

    configure_logging()
    fulfillment.init()
    with fulfillment.domain_context():
        customer = Customer(
            full_name="Demo Customer",
            email="demo@example.com",
            address="1 Demo Street",
            city="London",
            postal_code="EC1A 1BB",
        )
        package = Package(name="Weekly Box", description="Three deliveries", price=24.99, delivery_days=3)
        driver = Driver(full_name="Demo Driver", status=DriverStatus.ACTIVE.value)
        fulfillment.repository_for(Customer).add(customer)
        fulfillment.repository_for(Package).add(package)
        fulfillment.repository_for(Driver).add(driver)

        today = utc_today()
        entries = [
            {"date": (today + timedelta(days=offset)).isoformat(), "is_delivery_enabled": True}
            for offset in range(1, days + 1)
            if (today + timedelta(days=offset)).weekday() < 5
        ]
        OperationalCalendar().upsert_many(entries, admin_id="seed-demo")

    print(f"export LOADTEST_CUSTOMER_ID={customer.id}")
    print(f"export LOADTEST_PACKAGE_ID={package.id}")
    print(f"export LOADTEST_PACKAGE_AMOUNT={package.price_minor_units}")
    print(f"export LOADTEST_DRIVER_ID={driver.id}")


def main():
    parser = argparse.ArgumentParser(description="Subscription delivery management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    expire_parser = subparsers.add_parser("expire-orders", help="Expire orders past their end date")
    expire_parser.add_argument(
        "--as-of",
        help="Expire orders that ended before this day (YYYY-MM-DD, default: today in UTC)",
    )

    seed_parser = subparsers.add_parser("seed-demo", help="Create demo reference data and calendar")
    seed_parser.add_argument("--days", type=int, default=90, help="Days of calendar to enable (default: 90)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "expire-orders":
        expire_orders(args.as_of)
    elif args.command == "seed-demo":
        seed_demo(args.days)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
