"""Tests for InventoryReconciler against the product repository."""

import pytest
from protean.exceptions import ObjectNotFoundError
from storefront.errors import StockError
from storefront.inventory.reconciler import InventoryReconciler


class TestApplyOrderCreation:
    def test_decrements_each_product(self, create_product, load_product):
        a = create_product(title="A", quantity=10)
        b = create_product(title="B", quantity=4)
        InventoryReconciler().apply_order_creation(
            [{"product_id": a, "quantity": 3}, {"product_id": b, "quantity": 4}]
        )
        assert load_product(a).stock.quantity == 7
        assert load_product(b).stock.quantity == 0
        assert load_product(b).stock_status == "out_of_stock"

    def test_repeated_product_lines_are_combined(self, create_product, load_product):
        a = create_product(quantity=5)
        with pytest.raises(StockError):
            InventoryReconciler().apply_order_creation(
                [{"product_id": a, "quantity": 3}, {"product_id": a, "quantity": 3}]
            )
        assert load_product(a).stock.quantity == 5

    def test_short_line_leaves_earlier_lines_untouched(self, create_product, load_product):
        a = create_product(title="A", quantity=10)
        b = create_product(title="B", quantity=1)
        with pytest.raises(StockError) as exc:
            InventoryReconciler().apply_order_creation(
                [{"product_id": a, "quantity": 2}, {"product_id": b, "quantity": 2}]
            )
        assert exc.value.product_id == b
        assert exc.value.available_stock == 1
        assert load_product(a).stock.quantity == 10

    def test_reserved_units_are_not_sold(self, create_product, load_product):
        a = create_product(quantity=10, stock={"reserved": 4})
        with pytest.raises(StockError) as exc:
            InventoryReconciler().apply_order_creation(
                [{"product_id": a, "quantity": 4}, {"product_id": a, "quantity": 4}]
            )
        assert exc.value.available_stock == 6
        product = load_product(a)
        assert product.stock.quantity == 10
        assert product.stock.reserved == 4

    def test_sells_up_to_available_stock(self, create_product, load_product):
        a = create_product(quantity=10, stock={"reserved": 4})
        InventoryReconciler().apply_order_creation(
            [{"product_id": a, "quantity": 3}, {"product_id": a, "quantity": 3}]
        )
        product = load_product(a)
        assert product.stock.quantity == 4
        assert product.available_stock == 0

    def test_missing_product(self, create_product, load_product):
        a = create_product(quantity=10)
        with pytest.raises(ObjectNotFoundError):
            InventoryReconciler().apply_order_creation(
                [{"product_id": a, "quantity": 1}, {"product_id": "ghost", "quantity": 1}]
            )
        assert load_product(a).stock.quantity == 10

    def test_untracked_inventory_floors_at_zero(self, create_product, load_product):
        a = create_product(quantity=1, track_inventory=False)
        InventoryReconciler().apply_order_creation([{"product_id": a, "quantity": 5}])
        assert load_product(a).stock.quantity == 0


class TestApplyOrderCancellation:
    def test_restores_quantity_and_purchases(self, create_product, load_product):
        a = create_product(quantity=10)
        items = [{"product_id": a, "quantity": 4}]
        InventoryReconciler().apply_order_creation(items)
        InventoryReconciler().apply_order_cancellation(items)
        product = load_product(a)
        assert product.stock.quantity == 10
        assert product.analytics.purchases == 0

    def test_skips_missing_products(self, create_product, load_product):
        a = create_product(quantity=2)
        InventoryReconciler().apply_order_cancellation(
            [{"product_id": a, "quantity": 1}, {"product_id": "ghost", "quantity": 1}]
        )
        assert load_product(a).stock.quantity == 3
