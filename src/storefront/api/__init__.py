"""Storefront API package."""

from storefront.api.admin import admin_order_router
from storefront.api.catalogue import admin_product_router, product_router, search_router
from storefront.api.categories import admin_category_router, category_router
from storefront.api.errors import register_error_handlers
from storefront.api.orders import order_router
from storefront.api.registration import registration_router
from storefront.api.shopping import cart_router, wishlist_router

ROUTERS = [
    product_router,
    search_router,
    admin_product_router,
    category_router,
    admin_category_router,
    cart_router,
    wishlist_router,
    order_router,
    admin_order_router,
    registration_router,
]

__all__ = ["ROUTERS", "register_error_handlers"]
