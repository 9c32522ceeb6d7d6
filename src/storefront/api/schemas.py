"""Pydantic request schemas for the storefront API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from storefront.catalogue.normalization import normalize_product_input

# --- Catalogue ---


class PriceIn(BaseModel):
    original: float = Field(..., ge=0)
    selling: float | None = Field(None, ge=0)
    currency: Literal["INR", "USD", "EUR", "GBP"] = "INR"


class DiscountIn(BaseModel):
    type: Literal["percentage", "fixed"] = "percentage"
    value: float = Field(0.0, ge=0)
    start_date: str | None = None
    end_date: str | None = None
    is_active: bool = False


class StockIn(BaseModel):
    quantity: int = Field(0, ge=0)
    reserved: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)
    track_inventory: bool = True


class _NormalizedProduct(BaseModel):
    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_product_input(data) if isinstance(data, dict) else data


class CreateProductRequest(_NormalizedProduct):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Cotton Kurta",
                    "description": "Hand-block printed cotton kurta.",
                    "brand": "Fabindia",
                    "keywords": ["kurta", "cotton"],
                    "price": {"original": 1299, "currency": "INR"},
                    "discount": {"type": "percentage", "value": 10, "is_active": True},
                    "stock": {"quantity": 40, "low_stock_threshold": 5},
                    "status": "active",
                    "visibility": "public",
                }
            ]
        }
    }

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    short_description: str | None = Field(None, max_length=500)
    brand: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    keywords: list[str] | None = None
    sku: str | None = Field(None, max_length=50)
    slug: str | None = Field(None, max_length=220)
    price: PriceIn
    discount: DiscountIn | None = None
    stock: StockIn | None = None
    status: Literal["draft", "active", "inactive", "discontinued"] = "draft"
    visibility: Literal["public", "private", "hidden"] = "public"
    is_featured: bool = False
    is_trending: bool = False


class UpdateProductRequest(_NormalizedProduct):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    short_description: str | None = Field(None, max_length=500)
    brand: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    keywords: list[str] | None = None
    sku: str | None = Field(None, max_length=50)
    slug: str | None = Field(None, max_length=220)
    price: dict[str, Any] | None = None
    discount: dict[str, Any] | None = None
    stock: dict[str, Any] | None = None
    status: Literal["draft", "active", "inactive", "discontinued"] | None = None
    visibility: Literal["public", "private", "hidden"] | None = None
    is_featured: bool | None = None
    is_trending: bool | None = None


class AdjustStockRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"quantity": 5, "operation": "add", "reason": "Restock"}]}}

    quantity: int = Field(..., ge=0)
    operation: Literal["set", "add", "subtract"] = "set"
    reason: str | None = Field(None, max_length=255)


class AddProductImageRequest(BaseModel):
    filename: str = Field(..., max_length=255)
    content: str  # base64
    alt_text: str | None = Field(None, max_length=255)


class BulkUpdateProductsRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_ids": ["prod-001", "prod-002"],
                    "operation": "update_prices",
                    "price_operation": "percentage",
                    "percentage": -10,
                }
            ]
        }
    }

    product_ids: list[str] = Field(..., min_length=1)
    operation: Literal["update_status", "update_prices", "delete"]
    status: Literal["draft", "active", "inactive", "discontinued"] | None = None
    price_operation: Literal["percentage", "fixed"] = "percentage"
    percentage: float | None = None
    amount: float | None = None


class CategoryImageIn(BaseModel):
    filename: str = Field(..., max_length=255)
    content: str  # base64
    alt_text: str | None = Field(None, max_length=255)


class CreateCategoryRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [{"name": "Ethnic Wear", "description": "Kurtas, sarees and more", "is_featured": True}]
        }
    }

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    parent_id: str | None = None
    sort_order: int = 0
    status: Literal["active", "inactive"] = "active"
    is_featured: bool = False
    show_on_homepage: bool = False
    image: CategoryImageIn | None = None


class UpdateCategoryRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    sort_order: int | None = None
    status: Literal["active", "inactive"] | None = None
    is_featured: bool | None = None
    show_on_homepage: bool | None = None
    image: CategoryImageIn | None = None
    delete_image: bool = False


# --- Cart / Wishlist ---


class AddToCartRequest(BaseModel):
    model_config = {
        "json_schema_extra": {"examples": [{"product_id": "prod-001", "quantity": 2, "variants": {"size": "M"}}]}
    }

    product_id: str
    quantity: int = Field(1, ge=1)
    variants: dict[str, Any] = Field(default_factory=dict)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class MoveToCartRequest(BaseModel):
    quantity: int = Field(1, ge=1)


# --- Orders ---


class AddressIn(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    country: str | None = None
    phone: str | None = None
    landmark: str | None = None
    type: str | None = None


class CreateOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "street": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "pincode": "560001",
                        "phone": "9876543210",
                    },
                    "payment_method": "cod",
                    "notes": "Leave at the door",
                }
            ]
        }
    }

    # A bare string is accepted as the street line
    shipping_address: AddressIn | str | None = None
    billing_address: AddressIn | None = None
    payment_method: str | None = None
    notes: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class AdminUpdateOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "shipped",
                    "shipping_status": "shipped",
                    "tracking_id": "TRK123456",
                    "courier_name": "BlueDart",
                    "notes": "Handed to courier",
                }
            ]
        }
    }

    status: str | None = None
    shipping_status: str | None = None
    tracking_id: str | None = None
    awb_number: str | None = None
    courier_name: str | None = None
    payment_status: str | None = None
    transaction_id: str | None = None
    notes: str | None = None


# --- Registration ---


class StartRegistrationRequest(BaseModel):
    email: str = Field(..., max_length=254)
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., max_length=128)


class VerifyRegistrationRequest(BaseModel):
    email: str = Field(..., max_length=254)
    otp: str = Field(..., min_length=1, max_length=10)
