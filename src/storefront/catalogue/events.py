"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A product was added to the catalogue."""

    product_id = Identifier(required=True)
    sku = String(required=True)
    title = String(required=True)
    status = String(required=True)
    created_at = DateTime()


@storefront.event(part_of="Product")
class StockAdjusted:
    """An administrator changed the on-hand quantity of a product."""

    product_id = Identifier(required=True)
    operation = String(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    reason = String()
    adjusted_at = DateTime()


@storefront.event(part_of="Product")
class ProductDeleted:
    """A product was removed from sale (soft) or from the catalogue (permanent)."""

    product_id = Identifier(required=True)
    permanent = Boolean(default=False)
    deleted_at = DateTime()
