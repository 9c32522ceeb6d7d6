"""Catalogue search and filter query builder.

``ProductQuery`` is an immutable description of a listing request. It is
executed against the repository in two stages: exact-match filters (status,
brand, category, featured) are pushed down to the data store, the remaining
predicates (price range, stock presence, free text) plus sorting and pagination
run over the fetched rows.

Free text uses one strategy throughout: case-insensitive token matching over
title, descriptions, brand and keywords. With ``relevance`` sort the matches
are scored and ranked, and the plain substring filter is not applied.
"""

import math
import re
from dataclasses import dataclass, field, replace

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product, ProductStatus, ProductVisibility

DEFAULT_PAGE_SIZE = 20
MAX_SEARCH_PAGE_SIZE = 50
FEATURED_LIMIT = 10

# Weight of a token hit per searchable field
_TEXT_WEIGHTS = {
    "title": 3,
    "keywords": 2,
    "brand": 2,
    "short_description": 1,
    "description": 1,
}

# Public search sort keys -> (attribute path, descending)
_SEARCH_SORTS = {
    "price_low": [("price", False)],
    "price_high": [("price", True)],
    "newest": [("created_at", True)],
    "oldest": [("created_at", False)],
    "rating": [("rating", True), ("rating_count", True)],
    "popular": [("purchases", True), ("views", True)],
    "name_asc": [("title", False)],
    "name_desc": [("title", True)],
}
RELEVANCE = "relevance"

# Sortable field names accepted by the admin listing
_SORTABLE_FIELDS = {"created_at", "updated_at", "title", "price", "purchases", "views", "rating", "quantity"}


def _sort_value(product: Product, key: str):
    if key == "price":
        return product.pricing.selling
    if key == "rating":
        return product.rating.average if product.rating else 0.0
    if key == "rating_count":
        return product.rating.count if product.rating else 0
    if key == "purchases":
        return product.analytics.purchases if product.analytics else 0
    if key == "views":
        return product.analytics.views if product.analytics else 0
    if key == "quantity":
        return product.stock.quantity
    if key == "title":
        return (product.title or "").lower()
    return getattr(product, key)


def _tokens(text: str) -> list[str]:
    return [t for t in re.split(r"\W+", (text or "").lower()) if t]


def _searchable_text(product: Product) -> dict[str, str]:
    return {
        "title": product.title or "",
        "keywords": " ".join(product.keyword_list),
        "brand": product.brand or "",
        "short_description": product.short_description or "",
        "description": product.description or "",
    }


def text_score(product: Product, search: str) -> int:
    """Weighted count of query tokens found in the product's searchable fields."""
    score = 0
    fields = {name: set(_tokens(text)) for name, text in _searchable_text(product).items()}
    for token in _tokens(search):
        for name, words in fields.items():
            if token in words:
                score += _TEXT_WEIGHTS[name]
    return score


def matches_text(product: Product, search: str) -> bool:
    """Substring OR-filter: the whole query appears in any searchable field."""
    needle = search.strip().lower()
    return any(needle in text.lower() for text in _searchable_text(product).values())


@dataclass(frozen=True)
class ProductQuery:
    status: str | None = None
    brand: str | None = None
    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    in_stock: bool | None = None
    featured: bool | None = None
    search: str | None = None
    sort: str = "-created_at"
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    storefront: bool = False

    @classmethod
    def for_storefront(cls, q=None, sort=RELEVANCE, page=1, limit=DEFAULT_PAGE_SIZE, **filters):
        """Public search: only active, public products; page size clamped to 1..50."""
        return cls(
            search=q or None,
            sort=sort or RELEVANCE,
            page=max(1, int(page or 1)),
            limit=min(MAX_SEARCH_PAGE_SIZE, max(1, int(limit or DEFAULT_PAGE_SIZE))),
            storefront=True,
            **filters,
        )

    def with_page(self, page: int) -> "ProductQuery":
        return replace(self, page=page)

    # -------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------
    def store_filters(self) -> dict:
        """Exact-match criteria that the data store can evaluate."""
        criteria = {}
        if self.storefront:
            criteria["status"] = ProductStatus.ACTIVE.value
            criteria["visibility"] = ProductVisibility.PUBLIC.value
        elif self.status:
            criteria["status"] = self.status
        if self.brand:
            criteria["brand"] = self.brand
        if self.category:
            criteria["category"] = self.category
        if self.featured is not None:
            criteria["is_featured"] = self.featured
        return criteria

    @property
    def uses_relevance(self) -> bool:
        return self.sort == RELEVANCE and bool(self.search and self.search.strip())

    def accepts(self, product: Product) -> bool:
        """Predicates evaluated in memory after the store filters."""
        if not self.storefront and not self.status and product.status == ProductStatus.DELETED.value:
            return False
        price = product.pricing.selling
        if self.min_price is not None and price < self.min_price:
            return False
        if self.max_price is not None and price > self.max_price:
            return False
        if self.in_stock is True and product.stock.quantity <= 0:
            return False
        if self.in_stock is False and product.stock.quantity > 0:
            return False
        # Relevance ranking replaces the substring filter
        if self.search and self.search.strip() and not self.uses_relevance:
            return matches_text(product, self.search)
        return True

    def sort_keys(self) -> list[tuple[str, bool]]:
        if self.sort in _SEARCH_SORTS:
            return _SEARCH_SORTS[self.sort]
        if self.sort == RELEVANCE:
            # Without a query: featured first, then newest
            return [("is_featured", True), ("created_at", True)]

        descending = self.sort.startswith("-")
        name = self.sort.lstrip("-")
        if name not in _SORTABLE_FIELDS:
            raise ValidationError({"sort": [f"Cannot sort products by '{self.sort}'"]})
        return [(name, descending)]

    def order(self, products: list[Product], scores: dict[str, int] | None = None) -> list[Product]:
        """Deterministic ordering: requested keys, then id as the final tie-break."""
        ordered = sorted(products, key=lambda p: str(p.id))
        keys = list(self.sort_keys())
        for key, descending in reversed(keys):
            ordered.sort(key=lambda p, k=key: _sort_value(p, k), reverse=descending)
        if scores is not None:
            ordered.sort(key=lambda p: scores[str(p.id)], reverse=True)
        return ordered


@dataclass(frozen=True)
class SearchResult:
    products: list[Product] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            "current_page": self.page,
            "total_pages": self.total_pages,
            "total_count": self.total_count,
            "has_next_page": self.page < self.total_pages,
            "has_prev_page": self.page > 1,
            "limit": self.limit,
        }


def run_query(query: ProductQuery) -> SearchResult:
    """Execute a ProductQuery against the Product repository."""
    if query.page < 1:
        raise ValidationError({"page": ["Page must be 1 or greater"]})
    if query.limit < 1:
        raise ValidationError({"limit": ["Limit must be 1 or greater"]})

    repo = current_domain.repository_for(Product)
    candidates = repo.matching(**query.store_filters())
    matched = [p for p in candidates if query.accepts(p)]

    scores = None
    if query.uses_relevance:
        scores = {str(p.id): text_score(p, query.search) for p in matched}
        matched = [p for p in matched if scores[str(p.id)] > 0]

    ordered = query.order(matched, scores)
    start = (query.page - 1) * query.limit
    return SearchResult(
        products=ordered[start : start + query.limit],
        total_count=len(ordered),
        page=query.page,
        limit=query.limit,
    )


def find_with_filters(**params) -> SearchResult:
    """Admin listing: every product except logically deleted ones unless a status is given."""
    return run_query(ProductQuery(**{k: v for k, v in params.items() if v is not None}))


def search_products(q=None, sort=RELEVANCE, page=1, limit=DEFAULT_PAGE_SIZE, **filters) -> SearchResult:
    """Public catalogue search over active, public products."""
    filters = {k: v for k, v in filters.items() if v is not None}
    return run_query(ProductQuery.for_storefront(q=q, sort=sort, page=page, limit=limit, **filters))


def featured_products(limit=FEATURED_LIMIT) -> list[Product]:
    """Featured storefront products with stock on hand, best rated first, then newest."""
    query = ProductQuery(storefront=True, featured=True, in_stock=True)
    candidates = current_domain.repository_for(Product).matching(**query.store_filters())
    ordered = sorted((p for p in candidates if query.accepts(p)), key=lambda p: str(p.id))
    ordered.sort(key=lambda p: p.created_at, reverse=True)
    ordered.sort(key=lambda p: _sort_value(p, "rating"), reverse=True)
    return ordered[: min(MAX_SEARCH_PAGE_SIZE, max(1, int(limit or FEATURED_LIMIT)))]
