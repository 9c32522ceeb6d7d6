"""Domain events for the Category aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Category")
class CategoryCreated:
    category_id = Identifier(required=True)
    name = String(required=True)
    slug = String(required=True)
    parent_id = Identifier()
    level = Integer(default=0)
    created_at = DateTime()


@storefront.event(part_of="Category")
class CategoryUpdated:
    category_id = Identifier(required=True)
    name = String(required=True)
    slug = String(required=True)
    path = String()


@storefront.event(part_of="Category")
class CategoryDeleted:
    """A category was deactivated (soft) or removed (permanent)."""

    category_id = Identifier(required=True)
    permanent = Boolean(default=False)
    deleted_at = DateTime()
