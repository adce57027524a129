"""Shared BDD fixtures and step definitions for order fulfillment."""

from datetime import date

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from fulfillment.order.order import Order


@pytest.fixture()
def outcome():
    """Container for the order under test, captured errors and log entries."""
    return {"order": None, "exc": None, "logs": []}


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("deliveries are enabled on Mondays, Wednesdays and Fridays")
def deliveries_on_mon_wed_fri(mon_wed_fri):
    return mon_wed_fri


@given(parsers.cfparse('deliveries are disabled on "{day}"'))
def deliveries_disabled_on(enable_days, day):
    enable_days([date.fromisoformat(day)], enabled=False)


@given("the geocoder cannot find the address")
def geocoder_finds_nothing(fake_geocoder):
    fake_geocoder.configure(should_succeed=False)


@given("a customer has paid for the weekly package", target_fixture="payment")
def weekly_package_payment(make_payment):
    return make_payment()


@given("an unassigned order")
def unassigned_order(outcome, coordinator, make_payment):
    outcome["order"] = coordinator.create_order_from_confirmed_payment(make_payment())


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the delivery status is "{status}"'))
def delivery_status_is(outcome, status):
    assert _reload(outcome["order"]).delivery_status == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(outcome, status):
    assert _reload(outcome["order"]).status == status


@then(parsers.cfparse("{count:d} order exists"))
@then(parsers.cfparse("{count:d} orders exist"))
def order_count_is(count):
    assert len(current_domain.repository_for(Order).list_all()) == count


@then("the delivery action fails with a validation error")
def delivery_action_fails(outcome):
    assert outcome["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(outcome["exc"], ValidationError)
