"""Category listings: paginated browse, featured and homepage selections."""

import math

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.category.category import Category, CategoryStatus

DEFAULT_PAGE_SIZE = 20
FEATURED_LIMIT = 10
HOMEPAGE_LIMIT = 12

_SORTABLE_FIELDS = {"created_at", "updated_at", "name", "sort_order", "views", "product_count", "level"}


def _sort_value(category: Category, key: str):
    if key == "name":
        return (category.name or "").lower()
    return getattr(category, key) or 0


def _ordered(categories: list[Category], keys: list[tuple[str, bool]]) -> list[Category]:
    ordered = sorted(categories, key=lambda c: str(c.id))
    for key, descending in reversed(keys):
        ordered.sort(key=lambda c, k=key: _sort_value(c, k), reverse=descending)
    return ordered


def _sort_keys(sort: str) -> list[tuple[str, bool]]:
    name = sort.lstrip("-")
    if name not in _SORTABLE_FIELDS:
        raise ValidationError({"sort": [f"Cannot sort categories by '{sort}'"]})
    return [(name, sort.startswith("-"))]


def list_categories(
    status=None,
    featured=None,
    parent_id=None,
    search=None,
    sort="-created_at",
    page=1,
    limit=DEFAULT_PAGE_SIZE,
) -> dict:
    """Filter, sort and paginate categories.

    ``search`` is a case-insensitive substring match on name and description.
    """
    if page < 1:
        raise ValidationError({"page": ["Page must be 1 or greater"]})
    if limit < 1:
        raise ValidationError({"limit": ["Limit must be 1 or greater"]})

    criteria = {}
    if status:
        criteria["status"] = status
    if featured is not None:
        criteria["is_featured"] = featured
    if parent_id:
        criteria["parent_id"] = parent_id

    categories = current_domain.repository_for(Category).matching(**criteria)
    if search and search.strip():
        needle = search.strip().lower()
        categories = [
            c for c in categories if needle in (c.name or "").lower() or needle in (c.description or "").lower()
        ]

    ordered = _ordered(categories, _sort_keys(sort))
    total_count = len(ordered)
    total_pages = math.ceil(total_count / limit)
    start = (page - 1) * limit
    return {
        "categories": [c.to_view() for c in ordered[start : start + limit]],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_count": total_count,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
            "limit": limit,
        },
    }


def featured_categories(limit=FEATURED_LIMIT) -> list[dict]:
    """Active featured categories, most viewed first, then newest."""
    categories = current_domain.repository_for(Category).matching(
        status=CategoryStatus.ACTIVE.value, is_featured=True
    )
    ordered = _ordered(categories, [("views", True), ("created_at", True)])
    return [c.to_view() for c in ordered[: max(1, limit)]]


def homepage_categories() -> list[dict]:
    """Active categories flagged for the homepage, newest first."""
    categories = current_domain.repository_for(Category).matching(
        status=CategoryStatus.ACTIVE.value, show_on_homepage=True
    )
    ordered = _ordered(categories, [("created_at", True)])
    return [c.to_view() for c in ordered[:HOMEPAGE_LIMIT]]
