"""Application tests for cart commands and the cart read model."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError
from storefront.errors import StateConflictError, StockError
from storefront.ordering.cart.cart import Cart
from storefront.ordering.cart.management import ClearCart, RemoveFromCart, UpdateCartItem
from storefront.ordering.cart.view import cart_view

CUSTOMER_ID = "cust-001"


def _cart():
    return current_domain.repository_for(Cart).for_customer(CUSTOMER_ID)


class TestAddToCart:
    def test_first_add_creates_cart_at_selling_price(self, create_product, add_to_cart):
        product_id = create_product(price=200.0)
        add_to_cart(product_id, 2)
        cart = _cart()
        assert len(cart.items) == 1
        assert cart.items[0].price == 200.0

    def test_repeat_add_merges(self, create_product, add_to_cart):
        product_id = create_product()
        add_to_cart(product_id, 1, variants={"size": "M"})
        add_to_cart(product_id, 2, variants={"size": "M"})
        assert _cart().items[0].quantity == 3

    def test_unlisted_product_is_not_found(self, create_product, add_to_cart):
        product_id = create_product(status="inactive")
        with pytest.raises(ObjectNotFoundError):
            add_to_cart(product_id)

    def test_over_stock_rejected_and_not_persisted(self, create_product, add_to_cart):
        product_id = create_product(quantity=3)
        add_to_cart(product_id, 2)
        with pytest.raises(StateConflictError) as exc:
            add_to_cart(product_id, 2)
        assert exc.value.message == "Cart validation failed"
        assert exc.value.violations[0]["available_stock"] == 3
        assert _cart().items[0].quantity == 2

    def test_variants_share_unreserved_stock(self, create_product, add_to_cart):
        product_id = create_product(quantity=10, stock={"reserved": 4})
        add_to_cart(product_id, 4, variants={"size": "M"})
        with pytest.raises(StateConflictError) as exc:
            add_to_cart(product_id, 4, variants={"size": "L"})
        assert exc.value.violations[0]["available_stock"] == 6
        assert len(_cart().items) == 1


class TestUpdateCartItem:
    def test_update_quantity(self, create_product, add_to_cart):
        product_id = create_product(quantity=10)
        item_id = add_to_cart(product_id)
        current_domain.process(
            UpdateCartItem(customer_id=CUSTOMER_ID, item_id=item_id, quantity=6),
            asynchronous=False,
        )
        assert _cart().items[0].quantity == 6

    def test_insufficient_stock(self, create_product, add_to_cart):
        product_id = create_product(quantity=4)
        item_id = add_to_cart(product_id)
        with pytest.raises(StockError) as exc:
            current_domain.process(
                UpdateCartItem(customer_id=CUSTOMER_ID, item_id=item_id, quantity=5),
                asynchronous=False,
            )
        assert exc.value.available_stock == 4
        assert _cart().items[0].quantity == 1

    def test_other_variant_lines_count_against_stock(self, create_product, add_to_cart):
        product_id = create_product(quantity=10, stock={"reserved": 4})
        add_to_cart(product_id, 3, variants={"size": "M"})
        item_id = add_to_cart(product_id, 3, variants={"size": "L"})
        with pytest.raises(StockError) as exc:
            current_domain.process(
                UpdateCartItem(customer_id=CUSTOMER_ID, item_id=item_id, quantity=4),
                asynchronous=False,
            )
        assert exc.value.available_stock == 6

    def test_no_cart(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                UpdateCartItem(customer_id="nobody", item_id="x", quantity=1),
                asynchronous=False,
            )


class TestRemoveAndClear:
    def test_remove_item(self, create_product, add_to_cart):
        item_id = add_to_cart(create_product())
        current_domain.process(RemoveFromCart(customer_id=CUSTOMER_ID, item_id=item_id), asynchronous=False)
        assert _cart().is_empty

    def test_clear_keeps_cart(self, create_product, add_to_cart):
        add_to_cart(create_product(title="A"))
        add_to_cart(create_product(title="B"))
        current_domain.process(ClearCart(customer_id=CUSTOMER_ID), asynchronous=False)
        assert _cart() is not None
        assert _cart().is_empty


class TestCartView:
    def test_totals_include_flat_shipping(self, create_product, add_to_cart):
        add_to_cart(create_product(price=50.0), 2)
        add_to_cart(create_product(title="Stole", price=150.0), 1)
        view = cart_view(CUSTOMER_ID)
        assert view["subtotal"] == 250.0
        assert view["shipping"] == 85.0
        assert view["total"] == 335.0
        assert view["currency"] == "INR"
        assert view["item_count"] == 3
        assert view["issues"] == []

    def test_issues_after_product_goes_inactive(self, create_product, add_to_cart, load_product):
        product_id = create_product()
        add_to_cart(product_id)
        product = load_product(product_id)
        product.status = "inactive"
        current_domain.repository_for(type(product)).add(product)

        view = cart_view(CUSTOMER_ID)
        assert view["issues"][0]["action"] == "remove"
        assert view["items"][0]["product"]["status"] == "inactive"

    def test_empty_view(self):
        view = cart_view("nobody")
        assert view["items"] == []
        assert view["cart_id"] is None
