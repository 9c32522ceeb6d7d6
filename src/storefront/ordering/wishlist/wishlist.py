"""Wishlist aggregate: products a customer saved for later."""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier

from storefront.domain import storefront


@storefront.entity(part_of="Wishlist")
class WishlistItem:
    product_id = Identifier(required=True)
    added_at = DateTime()


@storefront.aggregate
class Wishlist:
    customer_id = Identifier(required=True)
    items = HasMany(WishlistItem)
    updated_at = DateTime()

    def contains(self, product_id) -> bool:
        return any(str(i.product_id) == str(product_id) for i in self.items)

    def add(self, product_id) -> None:
        if self.contains(product_id):
            raise ValidationError({"product_id": ["Product already in wishlist"]})
        now = datetime.now(UTC)
        self.add_items(WishlistItem(product_id=product_id, added_at=now))
        self.updated_at = now

    def remove(self, product_id) -> None:
        item = next((i for i in self.items if str(i.product_id) == str(product_id)), None)
        if item is None:
            raise ObjectNotFoundError({"product_id": ["Product not in wishlist"]})
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Wishlist)
class WishlistRepository:
    def for_customer(self, customer_id) -> Wishlist | None:
        return self._dao.query.filter(customer_id=str(customer_id)).all().first

    def get_or_create(self, customer_id) -> Wishlist:
        return self.for_customer(customer_id) or Wishlist(customer_id=str(customer_id))
