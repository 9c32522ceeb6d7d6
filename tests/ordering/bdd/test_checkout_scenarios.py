"""BDD tests for checkout and cancellation."""

import json

from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.errors import StateConflictError
from storefront.ordering.order.cancellation import CancelOrder
from storefront.ordering.order.checkout import PlaceOrder

CUSTOMER_ID = "cust-bdd"

scenarios("features/checkout.feature")


def _checkout(outcome, method):
    try:
        outcome["order"] = current_domain.process(
            PlaceOrder(
                customer_id=CUSTOMER_ID,
                customer_email="bdd@example.com",
                shipping_address=json.dumps({"street": "1 Park Street", "city": "Kolkata"}),
                payment_method=method,
            ),
            asynchronous=False,
        )
    except StateConflictError as exc:
        outcome["error"] = exc


def _cancel(outcome, key):
    try:
        current_domain.process(
            CancelOrder(order_id=outcome["order"]["id"], customer_id=CUSTOMER_ID, reason="Changed plans"),
            asynchronous=False,
        )
    except StateConflictError as exc:
        outcome[key] = exc


@given(parsers.cfparse('the customer checks out paying "{method}"'))
def _(outcome, method):
    _checkout(outcome, method)
    assert outcome["error"] is None


@when(parsers.cfparse('the customer checks out paying "{method}"'))
def _(outcome, method):
    _checkout(outcome, method)


@when("the customer cancels the order")
def _(outcome):
    _cancel(outcome, "error")
    assert outcome["error"] is None


@when("the customer cancels the order again")
def _(outcome):
    _cancel(outcome, "second_error")


@then(parsers.cfparse("the order total is {total:f}"))
def _(outcome, total):
    assert outcome["order"]["total"] == total


@then(parsers.cfparse('the order status is "{status}"'))
def _(outcome, status):
    assert outcome["order"]["status"] == status


@then(parsers.cfparse('checkout fails with "{message}"'))
def _(outcome, message):
    assert outcome["order"] is None
    assert outcome["error"].message == message


@then(parsers.cfparse('the second cancellation fails with "{message}"'))
def _(outcome, message):
    assert outcome["second_error"].message == message
