"""Cart validation against the live catalogue.

The validator only reads: it reports every problem it finds as a
``CartViolation`` carrying an action hint for the client, and never mutates
the cart or the catalogue. Checks run per line in a fixed order (product
exists, product listed, stock sufficient); the first failing check decides the
violation for that line. Stock is compared against the product's total
demand over all of its lines.
"""

from dataclasses import asdict, dataclass
from enum import Enum

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product


class ViolationAction(Enum):
    REMOVE = "remove"
    UPDATE = "update"


@dataclass(frozen=True)
class CartViolation:
    item_id: str | None
    product_id: str
    action: str
    message: str
    available_stock: int | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.available_stock is None:
            data.pop("available_stock")
        return data


def product_demand(items: list[dict]) -> dict[str, int]:
    """Total requested quantity per product across all lines."""
    totals: dict[str, int] = {}
    for item in items:
        product_id = str(item["product_id"])
        totals[product_id] = totals.get(product_id, 0) + int(item["quantity"])
    return totals


class CartValidator:
    def check_item(self, item: dict, product: Product | None, demand: int | None = None) -> CartViolation | None:
        """Check one cart line (``item_id``, ``product_id``, ``quantity``) against its product.

        ``demand`` is the product's total across every line of the cart (variants
        of one product share its stock); it defaults to the line's own quantity.
        """
        item_id = item.get("item_id")
        product_id = str(item["product_id"])

        if product is None:
            return CartViolation(item_id, product_id, ViolationAction.REMOVE.value, "Product not found")

        if not product.is_listed:
            return CartViolation(
                item_id,
                product_id,
                ViolationAction.REMOVE.value,
                "Product is no longer available",
            )

        requested = item["quantity"] if demand is None else demand
        if product.stock.track_inventory and product.available_stock < requested:
            available = max(product.available_stock, 0)
            return CartViolation(
                item_id,
                product_id,
                ViolationAction.UPDATE.value,
                f"Only {available} items available in stock",
                available_stock=available,
            )

        return None

    def validate(self, items: list[dict], products: dict[str, Product]) -> list[CartViolation]:
        """Validate lines against an already-loaded ``{product_id: Product}`` map."""
        demand = product_demand(items)
        violations = []
        for item in items:
            product_id = str(item["product_id"])
            violation = self.check_item(item, products.get(product_id), demand[product_id])
            if violation is not None:
                violations.append(violation)
        return violations

    def validate_items(self, items: list[dict]) -> list[CartViolation]:
        """Load the referenced products from the catalogue, then validate."""
        products = current_domain.repository_for(Product).find_many(item["product_id"] for item in items)
        return self.validate(items, products)
