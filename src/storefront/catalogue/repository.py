"""Repository for the Product aggregate."""

from protean.exceptions import ObjectNotFoundError

from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_by_sku(self, sku: str) -> Product | None:
        return self._dao.query.filter(sku=sku).all().first

    def find_many(self, product_ids) -> dict[str, Product]:
        """Load products by id, skipping ids that no longer resolve."""
        found = {}
        for product_id in {str(pid) for pid in product_ids}:
            try:
                found[product_id] = self.get(product_id)
            except ObjectNotFoundError:
                continue
        return found

    def matching(self, **criteria) -> list[Product]:
        """Products matching exact-value criteria on top-level fields."""
        query = self._dao.query
        if criteria:
            query = query.filter(**criteria)
        return query.all().items
