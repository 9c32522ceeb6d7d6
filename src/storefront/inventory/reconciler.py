"""Inventory reconciler: keeps catalogue stock in step with order transitions.

Both operations run inside the caller's unit of work. Every referenced product
is loaded and checked first; only then are the per-item changes applied, so a
failing line leaves no earlier line half-applied. Persisting a product goes
through the aggregate's version check, so two concurrent checkouts of the same
product cannot both commit against the same starting quantity: the loser fails
with ``ExpectedVersionError`` and may retry.

The reconciler does not guard against being invoked twice for one order. The
order's own status transition (processing → cancelled, checked before the
restore) is the guard.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.errors import StockError

logger = structlog.get_logger(__name__)


def _merge_quantities(items) -> dict[str, int]:
    totals: dict[str, int] = {}
    for item in items:
        product_id = str(item["product_id"])
        totals[product_id] = totals.get(product_id, 0) + int(item["quantity"])
    return totals


class InventoryReconciler:
    def _load(self, product_ids) -> dict[str, Product]:
        repo = current_domain.repository_for(Product)
        products = repo.find_many(product_ids)
        missing = set(product_ids) - set(products)
        if missing:
            raise ObjectNotFoundError({"product": [f"Product {pid} not found" for pid in sorted(missing)]})
        return products

    def apply_order_creation(self, items: list[dict]) -> dict[str, Product]:
        """Decrement quantity and count a purchase for each ordered item.

        Returns the updated products keyed by id.
        """
        totals = _merge_quantities(items)
        products = self._load(list(totals))

        for product_id, quantity in totals.items():
            product = products[product_id]
            if product.stock.track_inventory and product.available_stock < quantity:
                raise StockError(
                    f"Only {max(product.available_stock, 0)} items available in stock for '{product.title}'",
                    product_id=product_id,
                    available_stock=max(product.available_stock, 0),
                )

        repo = current_domain.repository_for(Product)
        for item in items:
            product = products[str(item["product_id"])]
            product.commit_sale(int(item["quantity"]))
        for product in products.values():
            repo.add(product)

        logger.info("stock_committed", products={pid: -qty for pid, qty in totals.items()})
        return products

    def apply_order_cancellation(self, items: list[dict]) -> None:
        """Inverse of ``apply_order_creation``: return quantity, uncount the purchase."""
        totals = _merge_quantities(items)
        repo = current_domain.repository_for(Product)
        products = repo.find_many(list(totals))
        # Permanently deleted products have no stock left to restore
        for product_id in sorted(set(totals) - set(products)):
            logger.warning("stock_restore_skipped", product_id=product_id, reason="product deleted")

        for item in items:
            product = products.get(str(item["product_id"]))
            if product is not None:
                product.restore_sale(int(item["quantity"]))
        for product in products.values():
            repo.add(product)

        logger.info("stock_restored", products=totals)
