"""Shared BDD fixtures and step definitions for checkout scenarios."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from storefront.catalogue.management import CreateProduct
from storefront.catalogue.product import Product
from storefront.ordering.cart.cart import Cart
from storefront.ordering.cart.management import AddToCart

CUSTOMER_ID = "cust-bdd"


@pytest.fixture()
def catalogue():
    """Product ids by title."""
    return {}


@pytest.fixture()
def outcome():
    """Container for the last order and any captured errors."""
    return {"order": None, "error": None, "second_error": None}


def _product(catalogue, title) -> Product:
    return current_domain.repository_for(Product).get(catalogue[title])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{title}" priced {price:f} with {quantity:d} in stock'))
def _(catalogue, title, price, quantity):
    catalogue[title] = current_domain.process(
        CreateProduct(
            title=title,
            original_price=price,
            stock=json.dumps({"quantity": quantity}),
            status="active",
        ),
        asynchronous=False,
    )


@given(parsers.cfparse('the cart holds {quantity:d} of "{title}"'))
def _(catalogue, quantity, title):
    current_domain.process(
        AddToCart(customer_id=CUSTOMER_ID, product_id=catalogue[title], quantity=quantity),
        asynchronous=False,
    )


@given(parsers.cfparse('"{title}" is made inactive'))
def _(catalogue, title):
    product = _product(catalogue, title)
    product.status = "inactive"
    current_domain.repository_for(Product).add(product)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{title}" has {quantity:d} in stock'))
def _(catalogue, title, quantity):
    assert _product(catalogue, title).stock.quantity == quantity


@then("the cart is empty")
def _():
    assert current_domain.repository_for(Cart).for_customer(CUSTOMER_ID).is_empty


@then(parsers.cfparse("the cart still holds {count:d} items"))
def _(count):
    assert len(current_domain.repository_for(Cart).for_customer(CUSTOMER_ID).items) == count
