"""Shopping cart aggregate: one per customer, emptied (never deleted) at checkout."""

import json
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, Text

from storefront.domain import storefront


def canonical_variants(variants) -> str:
    """Stable JSON form of a variant selection, used to merge identical lines."""
    if isinstance(variants, str):
        variants = json.loads(variants) if variants else {}
    return json.dumps(variants or {}, sort_keys=True)


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)  # Selling price when the item was added
    variants = Text(default="{}")
    added_at = DateTime()

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


@storefront.aggregate
class Cart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    @property
    def subtotal(self) -> float:
        return round(sum(item.line_total for item in self.items), 2)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_item(self, item_id) -> CartItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ObjectNotFoundError({"item_id": ["Item not found in cart"]})
        return item

    def add_item(self, product_id, quantity, price, variants=None) -> CartItem:
        """Add a line, or grow an existing line with the same product and variants."""
        variant_key = canonical_variants(variants)
        now = datetime.now(UTC)

        existing = next(
            (i for i in self.items if str(i.product_id) == str(product_id) and i.variants == variant_key),
            None,
        )
        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                quantity=quantity,
                price=price,
                variants=variant_key,
                added_at=now,
            )
            self.add_items(item)

        self.updated_at = now
        return item

    def update_item_quantity(self, item_id, quantity) -> CartItem:
        item = self.find_item(item_id)
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)
        return item

    def remove_item(self, item_id) -> None:
        item = self.find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

    def clear(self) -> None:
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

    def snapshot(self) -> list[dict]:
        """Plain copies of the cart lines, safe to keep after the cart is cleared."""
        return [
            {
                "item_id": str(item.id),
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "price": item.price,
                "variants": json.loads(item.variants or "{}"),
            }
            for item in self.items
        ]


@storefront.repository(part_of=Cart)
class CartRepository:
    def for_customer(self, customer_id) -> Cart | None:
        return self._dao.query.filter(customer_id=str(customer_id)).all().first

    def get_or_create(self, customer_id) -> Cart:
        """The customer's cart, created lazily on first use (not persisted until added)."""
        return self.for_customer(customer_id) or Cart.create(customer_id=str(customer_id))
