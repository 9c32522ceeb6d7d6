import json
import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path or "/bdd/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    # Load the api package before domain traversal so its eager router
    # imports do not re-enter a half-loaded submodule.
    import storefront.api as _api  # noqa: F401

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Reset stores and adapter singletons after every test."""
    yield

    from protean import current_domain
    from storefront.notifications.channel import reset_email_channel
    from storefront.storage import reset_blob_store

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()

    reset_email_channel()
    reset_blob_store()


@pytest.fixture
def email_outbox():
    """The in-memory email adapter used by the notifier."""
    from storefront.notifications.channel import get_email_channel

    return get_email_channel()


@pytest.fixture
def create_product():
    """Factory: create a catalogue product through its command and return the id."""
    from protean import current_domain
    from storefront.catalogue.management import CreateProduct

    def _create(
        title="Cotton Kurta",
        price=100.0,
        quantity=10,
        status="active",
        visibility="public",
        track_inventory=True,
        **extra,
    ):
        stock = {"quantity": quantity, "track_inventory": track_inventory}
        stock.update(extra.pop("stock", {}))
        return current_domain.process(
            CreateProduct(
                title=title,
                original_price=price,
                stock=json.dumps(stock),
                status=status,
                visibility=visibility,
                **extra,
            ),
            asynchronous=False,
        )

    return _create


@pytest.fixture
def create_category():
    """Factory: create a category through its command and return the id."""
    from protean import current_domain
    from storefront.catalogue.category.management import CreateCategory

    def _create(name="Ethnic Wear", **extra):
        return current_domain.process(CreateCategory(name=name, **extra), asynchronous=False)

    return _create


@pytest.fixture
def load_category():
    from protean import current_domain
    from storefront.catalogue.category.category import Category

    def _load(category_id):
        return current_domain.repository_for(Category).get(category_id)

    return _load


@pytest.fixture
def load_product():
    from protean import current_domain
    from storefront.catalogue.product import Product

    def _load(product_id):
        return current_domain.repository_for(Product).get(product_id)

    return _load


@pytest.fixture
def client():
    """TestClient over every storefront router with the error envelope installed."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient
    from storefront.api import ROUTERS, register_error_handlers

    app = FastAPI()
    for router in ROUTERS:
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture
def customer_headers():
    return {
        "X-Customer-Id": "cust-001",
        "X-Customer-Email": "asha@example.com",
        "X-Customer-Name": "Asha Rao",
    }


@pytest.fixture
def admin_headers():
    return {"X-Admin-Id": "admin-001", "X-Admin-Permissions": "orders:manage,products:manage"}


@pytest.fixture
def add_to_cart():
    from protean import current_domain
    from storefront.ordering.cart.management import AddToCart

    def _add(product_id, quantity=1, customer_id="cust-001", variants=None):
        return current_domain.process(
            AddToCart(
                customer_id=customer_id,
                product_id=product_id,
                quantity=quantity,
                variants=json.dumps(variants) if variants else None,
            ),
            asynchronous=False,
        )

    return _add


@pytest.fixture
def place_order():
    from protean import current_domain
    from storefront.ordering.order.checkout import PlaceOrder

    def _place(customer_id="cust-001", address=None, payment_method="cod", **extra):
        address = address or {"street": "12 MG Road", "city": "Pune", "pincode": "411001", "phone": "9800000000"}
        return current_domain.process(
            PlaceOrder(
                customer_id=customer_id,
                customer_email="asha@example.com",
                customer_name="Asha Rao",
                shipping_address=json.dumps(address) if isinstance(address, dict) else address,
                payment_method=payment_method,
                **extra,
            ),
            asynchronous=False,
        )

    return _place


@pytest.fixture
def placed_order(create_product, add_to_cart, place_order):
    """An order for 2 x 50.00 and 1 x 150.00, stock 10 and 5 before checkout."""
    kurta = create_product(title="Cotton Kurta", price=50.0, quantity=10)
    stole = create_product(title="Wool Stole", price=150.0, quantity=5)
    add_to_cart(kurta, 2)
    add_to_cart(stole, 1)
    order = place_order()
    return {"order": order, "kurta": kurta, "stole": stole}
