"""Product aggregate root with pricing, discount, stock and analytics value objects."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.catalogue.events import ProductCreated, ProductDeleted, StockAdjusted
from storefront.domain import storefront
from storefront.errors import StockError
from storefront.utils.codes import generate_sku, slugify


class ProductStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"
    DELETED = "deleted"  # Logical deletion marker, hidden from every listing


class ProductVisibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    HIDDEN = "hidden"


class Currency(Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class StockStatus(Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


class StockOperation(Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Product")
class Pricing:
    """Original (list) price and the price the product actually sells for."""

    original: Float(required=True, min_value=0.0)
    selling: Float(required=True, min_value=0.0)
    currency: String(max_length=3, choices=Currency, default=Currency.INR.value)


@storefront.value_object(part_of="Product")
class Discount:
    """Discount applied to the original price while ``is_active`` is set.

    The date window is informational; it is stored and returned but does not
    switch the discount on or off.
    """

    discount_type: String(choices=DiscountType, default=DiscountType.PERCENTAGE.value)
    value: Float(default=0.0, min_value=0.0)
    start_date: DateTime()
    end_date: DateTime()
    is_active: Boolean(default=False)

    @invariant.post
    def percentage_must_not_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.value or 0) > 100:
            raise ValidationError({"discount": ["Percentage discount cannot exceed 100"]})


@storefront.value_object(part_of="Product")
class StockLevel:
    quantity: Integer(default=0, min_value=0)
    reserved: Integer(default=0, min_value=0)
    low_stock_threshold: Integer(default=10, min_value=0)
    track_inventory: Boolean(default=True)


@storefront.value_object(part_of="Product")
class ProductAnalytics:
    views: Integer(default=0, min_value=0)
    purchases: Integer(default=0, min_value=0)
    wishlist_count: Integer(default=0, min_value=0)


@storefront.value_object(part_of="Product")
class Rating:
    average: Float(default=0.0, min_value=0.0, max_value=5.0)
    count: Integer(default=0, min_value=0)


def _stock(current: StockLevel, **changes) -> StockLevel:
    values = {
        "quantity": current.quantity,
        "reserved": current.reserved,
        "low_stock_threshold": current.low_stock_threshold,
        "track_inventory": current.track_inventory,
    }
    values.update(changes)
    return StockLevel(**values)


def _analytics(current: ProductAnalytics, **changes) -> ProductAnalytics:
    values = {
        "views": current.views,
        "purchases": current.purchases,
        "wishlist_count": current.wishlist_count,
    }
    values.update(changes)
    return ProductAnalytics(**values)


def discount_from_input(data: dict | None, current: Discount | None = None) -> Discount:
    """Build a Discount from payload keys (``type``, ``value``, ...), merging over ``current``."""
    current = current or Discount()
    data = data or {}
    return Discount(
        discount_type=data.get("type", current.discount_type),
        value=data.get("value", current.value),
        start_date=data.get("start_date", current.start_date),
        end_date=data.get("end_date", current.end_date),
        is_active=data.get("is_active", current.is_active),
    )


def compute_selling_price(original: float, discount: Discount | None) -> float | None:
    """Selling price implied by an active discount, or None when no discount applies."""
    if discount is None or not discount.is_active or not discount.value or discount.value <= 0:
        return None
    if discount.discount_type == DiscountType.PERCENTAGE.value:
        reduction = original * discount.value / 100
    else:
        reduction = discount.value
    return round(max(0.0, original - reduction), 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Product:
    title = String(required=True, max_length=200)
    description = Text()
    short_description = String(max_length=500)
    brand = String(max_length=100)
    category = Identifier()  # Category id
    keywords = Text()  # JSON array of lower-cased keywords
    sku = String(required=True, max_length=50)
    slug = String(required=True, max_length=220)
    pricing = ValueObject(Pricing, required=True)
    discount = ValueObject(Discount)
    stock = ValueObject(StockLevel)
    status = String(choices=ProductStatus, default=ProductStatus.DRAFT.value)
    visibility = String(choices=ProductVisibility, default=ProductVisibility.PUBLIC.value)
    is_featured = Boolean(default=False)
    is_trending = Boolean(default=False)
    analytics = ValueObject(ProductAnalytics)
    rating = ValueObject(Rating)
    images = Text()  # JSON array of {url, key, alt_text}
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def reserved_cannot_exceed_quantity(self):
        if self.stock and self.stock.reserved > self.stock.quantity:
            raise ValidationError({"stock": ["Reserved stock cannot exceed quantity"]})

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def available_stock(self) -> int:
        return self.stock.quantity - self.stock.reserved

    @property
    def stock_status(self) -> str:
        available = self.available_stock
        if available <= 0:
            return StockStatus.OUT_OF_STOCK.value
        if available <= self.stock.low_stock_threshold:
            return StockStatus.LOW_STOCK.value
        return StockStatus.IN_STOCK.value

    @property
    def discount_amount(self) -> float:
        return round(max(0.0, self.pricing.original - self.pricing.selling), 2)

    @property
    def is_listed(self) -> bool:
        """Active and publicly visible: can be browsed, carted and bought."""
        return self.status == ProductStatus.ACTIVE.value and self.visibility == ProductVisibility.PUBLIC.value

    @property
    def keyword_list(self) -> list[str]:
        return json.loads(self.keywords) if self.keywords else []

    @property
    def image_list(self) -> list[dict]:
        return json.loads(self.images) if self.images else []

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        title,
        original_price,
        selling_price=None,
        currency=Currency.INR.value,
        description=None,
        short_description=None,
        brand=None,
        category=None,
        keywords=None,
        sku=None,
        slug=None,
        discount=None,
        stock=None,
        status=ProductStatus.DRAFT.value,
        visibility=ProductVisibility.PUBLIC.value,
        is_featured=False,
        is_trending=False,
    ):
        """Create a product from normalized input.

        Args:
            discount: Optional dict with type, value, start_date, end_date, is_active.
            stock: Optional dict with quantity, reserved, low_stock_threshold, track_inventory.
        """
        now = datetime.now(UTC)
        product = cls(
            title=title,
            description=description,
            short_description=short_description,
            brand=brand,
            category=category,
            keywords=json.dumps(keywords or []),
            sku=sku or generate_sku(title),
            slug=slug or slugify(title),
            pricing=Pricing(
                original=original_price,
                selling=original_price if selling_price is None else selling_price,
                currency=currency or Currency.INR.value,
            ),
            discount=discount_from_input(discount),
            stock=StockLevel(**{k: v for k, v in (stock or {}).items() if v is not None}),
            status=status or ProductStatus.DRAFT.value,
            visibility=visibility or ProductVisibility.PUBLIC.value,
            is_featured=bool(is_featured),
            is_trending=bool(is_trending),
            analytics=ProductAnalytics(),
            rating=Rating(),
            images=json.dumps([]),
            created_at=now,
            updated_at=now,
        )
        product.apply_discount_pricing()

        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                sku=product.sku,
                title=product.title,
                status=product.status,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def apply_discount_pricing(self) -> None:
        """Recompute the selling price from the original price and an active discount."""
        selling = compute_selling_price(self.pricing.original, self.discount)
        if selling is not None and selling != self.pricing.selling:
            self.pricing = Pricing(
                original=self.pricing.original,
                selling=selling,
                currency=self.pricing.currency,
            )

    def reprice(self, percentage: float | None = None, amount: float | None = None) -> None:
        """Move both prices by a percentage or by a fixed amount, never below zero."""

        def adjusted(value: float) -> float:
            if percentage is not None:
                value = value * (1 + percentage / 100)
            else:
                value = value + (amount or 0)
            return round(max(0.0, value), 2)

        self.pricing = Pricing(
            original=adjusted(self.pricing.original),
            selling=adjusted(self.pricing.selling),
            currency=self.pricing.currency,
        )
        self.apply_discount_pricing()
        self.updated_at = datetime.now(UTC)

    def update_details(self, **changes) -> None:
        """Apply a partial update. Nested ``price``/``discount``/``stock`` dicts merge."""
        scalar_fields = (
            "title",
            "description",
            "short_description",
            "brand",
            "category",
            "sku",
            "slug",
            "status",
            "visibility",
            "is_featured",
            "is_trending",
        )
        for name in scalar_fields:
            if changes.get(name) is not None:
                setattr(self, name, changes[name])

        if changes.get("keywords") is not None:
            self.keywords = json.dumps(changes["keywords"])

        price = changes.get("price") or {}
        if price:
            self.pricing = Pricing(
                original=price.get("original", self.pricing.original),
                selling=price.get("selling", self.pricing.selling),
                currency=price.get("currency", self.pricing.currency),
            )

        discount = changes.get("discount") or {}
        if discount:
            self.discount = discount_from_input(discount, current=self.discount)

        stock = changes.get("stock") or {}
        if stock:
            self.stock = _stock(self.stock, **stock)

        self.apply_discount_pricing()
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def adjust_stock(self, quantity, operation=StockOperation.SET.value, reason=None):
        """Administrative stock change. Subtraction clamps at zero.

        Returns:
            tuple of (previous_quantity, new_quantity)
        """
        try:
            op = StockOperation(operation)
        except ValueError:
            raise ValidationError(
                {"operation": [f"Invalid stock operation '{operation}'. Use set, add or subtract"]}
            ) from None
        if quantity is None or quantity < 0:
            raise ValidationError({"quantity": ["Quantity must be a non-negative integer"]})

        previous = self.stock.quantity
        if op == StockOperation.SET:
            new_quantity = quantity
        elif op == StockOperation.ADD:
            new_quantity = previous + quantity
        else:
            new_quantity = max(0, previous - quantity)

        # Reserved units can never exceed what is on hand
        self.stock = _stock(
            self.stock,
            quantity=new_quantity,
            reserved=min(self.stock.reserved, new_quantity),
        )
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                operation=op.value,
                previous_quantity=previous,
                new_quantity=new_quantity,
                reason=reason,
                adjusted_at=now,
            )
        )
        return previous, new_quantity

    def commit_sale(self, quantity: int) -> None:
        """Conditional decrement for a sale: reserved units are never sold."""
        if self.stock.track_inventory and self.available_stock < quantity:
            raise StockError(
                f"Only {max(self.available_stock, 0)} items available in stock for '{self.title}'",
                product_id=str(self.id),
                available_stock=max(self.available_stock, 0),
            )
        new_quantity = max(0, self.stock.quantity - quantity)
        self.stock = _stock(self.stock, quantity=new_quantity, reserved=min(self.stock.reserved, new_quantity))
        self.analytics = _analytics(self.analytics, purchases=self.analytics.purchases + 1)
        self.updated_at = datetime.now(UTC)

    def restore_sale(self, quantity: int) -> None:
        """Exact inverse of ``commit_sale``."""
        self.stock = _stock(self.stock, quantity=self.stock.quantity + quantity)
        self.analytics = _analytics(self.analytics, purchases=max(0, self.analytics.purchases - 1))
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------
    def record_view(self) -> None:
        self.analytics = _analytics(self.analytics, views=self.analytics.views + 1)

    def wishlisted(self) -> None:
        self.analytics = _analytics(self.analytics, wishlist_count=self.analytics.wishlist_count + 1)

    def unwishlisted(self) -> None:
        self.analytics = _analytics(self.analytics, wishlist_count=max(0, self.analytics.wishlist_count - 1))

    # -------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------
    def add_image(self, url, key, alt_text=None) -> None:
        images = self.image_list
        images.append({"url": url, "key": key, "alt_text": alt_text or self.title})
        self.images = json.dumps(images)
        self.updated_at = datetime.now(UTC)

    def remove_image(self, key) -> None:
        images = self.image_list
        remaining = [image for image in images if image["key"] != key]
        if len(remaining) == len(images):
            raise ValidationError({"image": ["Image not found on product"]})
        self.images = json.dumps(remaining)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_deleted(self) -> None:
        if self.status == ProductStatus.DELETED.value:
            raise ValidationError({"status": ["Product is already deleted"]})
        now = datetime.now(UTC)
        self.status = ProductStatus.DELETED.value
        self.updated_at = now
        self.raise_(ProductDeleted(product_id=str(self.id), permanent=False, deleted_at=now))

    def to_summary(self) -> dict:
        """Catalogue view embedded in cart lines, order items and search results."""
        return {
            "id": str(self.id),
            "title": self.title,
            "sku": self.sku,
            "slug": self.slug,
            "brand": self.brand,
            "category": self.category,
            "price": {
                "original": self.pricing.original,
                "selling": self.pricing.selling,
                "currency": self.pricing.currency,
            },
            "discount_amount": self.discount_amount,
            "status": self.status,
            "visibility": self.visibility,
            "available_stock": self.available_stock,
            "stock_status": self.stock_status,
            "is_featured": self.is_featured,
            "is_trending": self.is_trending,
            "rating": {"average": self.rating.average, "count": self.rating.count} if self.rating else None,
            "images": self.image_list,
        }
