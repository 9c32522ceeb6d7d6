"""FastAPI endpoints for the catalogue: public browsing/search and admin management."""

import json

from fastapi import APIRouter, Depends
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddProductImageRequest,
    AdjustStockRequest,
    BulkUpdateProductsRequest,
    CreateProductRequest,
    UpdateProductRequest,
)
from storefront.catalogue.management import (
    AddProductImage,
    AdjustStock,
    BulkUpdateProducts,
    CreateProduct,
    DeleteProduct,
    RecordProductView,
    RemoveProductImage,
    UpdateProduct,
)
from storefront.catalogue.analytics import DEFAULT_PERIOD, product_analytics
from storefront.catalogue.product import Product
from storefront.catalogue.search import (
    FEATURED_LIMIT,
    RELEVANCE,
    SearchResult,
    featured_products,
    find_with_filters,
    search_products,
)
from storefront.identity.principal import MANAGE_PRODUCTS, require_permission

product_router = APIRouter(prefix="/products", tags=["products"])
search_router = APIRouter(prefix="/search", tags=["search"])
admin_product_router = APIRouter(
    prefix="/admin/products",
    tags=["admin-products"],
    dependencies=[Depends(require_permission(MANAGE_PRODUCTS))],
)


def _listing(result: SearchResult) -> dict:
    return {
        "success": True,
        "data": {
            "products": [p.to_summary() for p in result.products],
            "pagination": result.pagination(),
        },
    }


# --- Public ---


@product_router.get("")
async def list_products(
    brand: str | None = None,
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    in_stock: bool | None = None,
    featured: bool | None = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 20,
):
    result = search_products(
        sort=sort,
        page=page,
        limit=limit,
        brand=brand,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        featured=featured,
    )
    return _listing(result)


@product_router.get("/featured")
async def list_featured_products(limit: int = FEATURED_LIMIT):
    return {"success": True, "data": [p.to_summary() for p in featured_products(limit=limit)]}


@product_router.get("/{product_id}")
async def get_product(product_id: str):
    product = current_domain.repository_for(Product).get(product_id)
    if not product.is_listed:
        raise ObjectNotFoundError({"product": ["Product not found"]})
    current_domain.process(RecordProductView(product_id=product_id), asynchronous=False)
    return {"success": True, "data": product.to_summary()}


@search_router.get("")
async def search(
    q: str | None = None,
    brand: str | None = None,
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    in_stock: bool | None = None,
    featured: bool | None = None,
    sort: str = RELEVANCE,
    page: int = 1,
    limit: int = 20,
):
    result = search_products(
        q=q,
        sort=sort,
        page=page,
        limit=limit,
        brand=brand,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        featured=featured,
    )
    response = _listing(result)
    response["data"]["query"] = q
    return response


# --- Admin ---


@admin_product_router.get("")
async def admin_list_products(
    status: str | None = None,
    brand: str | None = None,
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    in_stock: bool | None = None,
    featured: bool | None = None,
    search: str | None = None,
    sort: str = "-created_at",
    page: int = 1,
    limit: int = 20,
):
    result = find_with_filters(
        status=status,
        brand=brand,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        featured=featured,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return _listing(result)


@admin_product_router.post("", status_code=201)
async def create_product(body: CreateProductRequest):
    command = CreateProduct(
        title=body.title,
        description=body.description,
        short_description=body.short_description,
        brand=body.brand,
        category=body.category,
        keywords=json.dumps(body.keywords or []),
        sku=body.sku,
        slug=body.slug,
        original_price=body.price.original,
        selling_price=body.price.selling,
        currency=body.price.currency,
        discount=body.discount.model_dump_json() if body.discount else None,
        stock=body.stock.model_dump_json() if body.stock else None,
        status=body.status,
        visibility=body.visibility,
        is_featured=body.is_featured,
        is_trending=body.is_trending,
    )
    product_id = current_domain.process(command, asynchronous=False)
    product = current_domain.repository_for(Product).get(product_id)
    return {"success": True, "data": product.to_summary()}


@admin_product_router.patch("/{product_id}")
async def update_product(product_id: str, body: UpdateProductRequest):
    changes = body.model_dump(mode="json", exclude_none=True)
    current_domain.process(UpdateProduct(product_id=product_id, changes=json.dumps(changes)), asynchronous=False)
    product = current_domain.repository_for(Product).get(product_id)
    return {"success": True, "data": product.to_summary()}


@admin_product_router.post("/{product_id}/stock")
async def adjust_stock(product_id: str, body: AdjustStockRequest):
    result = current_domain.process(
        AdjustStock(
            product_id=product_id,
            quantity=body.quantity,
            operation=body.operation,
            reason=body.reason,
        ),
        asynchronous=False,
    )
    return {"success": True, "data": result}


@admin_product_router.delete("/{product_id}")
async def delete_product(product_id: str, permanent: bool = False):
    current_domain.process(DeleteProduct(product_id=product_id, permanent=permanent), asynchronous=False)
    message = "Product permanently deleted" if permanent else "Product deleted"
    return {"success": True, "message": message}


@admin_product_router.post("/{product_id}/images", status_code=201)
async def add_product_image(product_id: str, body: AddProductImageRequest):
    stored = current_domain.process(
        AddProductImage(
            product_id=product_id,
            filename=body.filename,
            content=body.content,
            alt_text=body.alt_text,
        ),
        asynchronous=False,
    )
    return {"success": True, "data": stored}


@admin_product_router.delete("/{product_id}/images")
async def remove_product_image(product_id: str, key: str):
    current_domain.process(RemoveProductImage(product_id=product_id, key=key), asynchronous=False)
    return {"success": True, "message": "Image removed"}


@admin_product_router.post("/bulk")
async def bulk_update_products(body: BulkUpdateProductsRequest):
    result = current_domain.process(
        BulkUpdateProducts(
            product_ids=json.dumps(body.product_ids),
            operation=body.operation,
            status=body.status,
            price_operation=body.price_operation,
            percentage=body.percentage,
            amount=body.amount,
        ),
        asynchronous=False,
    )
    return {"success": True, "message": f"Bulk {body.operation} completed", "data": result}


@admin_product_router.get("/{product_id}/analytics")
async def get_product_analytics(product_id: str, period: str = DEFAULT_PERIOD):
    return {"success": True, "data": product_analytics(product_id, period=period)}
