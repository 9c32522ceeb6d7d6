"""FastAPI endpoints for the customer's cart and wishlist."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.schemas import AddToCartRequest, MoveToCartRequest, UpdateCartItemRequest
from storefront.identity.principal import Customer, current_customer
from storefront.ordering.cart.management import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from storefront.ordering.cart.view import cart_view
from storefront.ordering.wishlist.management import AddToWishlist, MoveToCart, RemoveFromWishlist
from storefront.ordering.wishlist.view import wishlist_view

cart_router = APIRouter(prefix="/cart", tags=["cart"])
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])


# --- Cart ---


@cart_router.get("")
async def get_cart(customer: Customer = Depends(current_customer)):
    return {"success": True, "data": cart_view(customer.customer_id)}


@cart_router.post("/items", status_code=201)
async def add_to_cart(body: AddToCartRequest, customer: Customer = Depends(current_customer)):
    current_domain.process(
        AddToCart(
            customer_id=customer.customer_id,
            product_id=body.product_id,
            quantity=body.quantity,
            variants=json.dumps(body.variants),
        ),
        asynchronous=False,
    )
    return {"success": True, "message": "Item added to cart", "data": cart_view(customer.customer_id)}


@cart_router.patch("/items/{item_id}")
async def update_cart_item(item_id: str, body: UpdateCartItemRequest, customer: Customer = Depends(current_customer)):
    current_domain.process(
        UpdateCartItem(customer_id=customer.customer_id, item_id=item_id, quantity=body.quantity),
        asynchronous=False,
    )
    return {"success": True, "message": "Cart updated", "data": cart_view(customer.customer_id)}


@cart_router.delete("/items/{item_id}")
async def remove_from_cart(item_id: str, customer: Customer = Depends(current_customer)):
    current_domain.process(RemoveFromCart(customer_id=customer.customer_id, item_id=item_id), asynchronous=False)
    return {"success": True, "message": "Item removed from cart", "data": cart_view(customer.customer_id)}


@cart_router.delete("")
async def clear_cart(customer: Customer = Depends(current_customer)):
    current_domain.process(ClearCart(customer_id=customer.customer_id), asynchronous=False)
    return {"success": True, "message": "Cart cleared", "data": cart_view(customer.customer_id)}


@cart_router.post("/validate")
async def validate_cart(customer: Customer = Depends(current_customer)):
    issues = cart_view(customer.customer_id)["issues"]
    return {"success": True, "data": {"valid": not issues, "issues": issues}}


# --- Wishlist ---


@wishlist_router.get("")
async def get_wishlist(customer: Customer = Depends(current_customer)):
    return {"success": True, "data": wishlist_view(customer.customer_id)}


@wishlist_router.post("/{product_id}", status_code=201)
async def add_to_wishlist(product_id: str, customer: Customer = Depends(current_customer)):
    current_domain.process(AddToWishlist(customer_id=customer.customer_id, product_id=product_id), asynchronous=False)
    return {"success": True, "message": "Added to wishlist", "data": wishlist_view(customer.customer_id)}


@wishlist_router.delete("/{product_id}")
async def remove_from_wishlist(product_id: str, customer: Customer = Depends(current_customer)):
    current_domain.process(
        RemoveFromWishlist(customer_id=customer.customer_id, product_id=product_id),
        asynchronous=False,
    )
    return {"success": True, "message": "Removed from wishlist", "data": wishlist_view(customer.customer_id)}


@wishlist_router.post("/{product_id}/move-to-cart")
async def move_to_cart(
    product_id: str,
    body: MoveToCartRequest | None = None,
    customer: Customer = Depends(current_customer),
):
    current_domain.process(
        MoveToCart(
            customer_id=customer.customer_id,
            product_id=product_id,
            quantity=body.quantity if body else 1,
        ),
        asynchronous=False,
    )
    return {"success": True, "message": "Moved to cart", "data": cart_view(customer.customer_id)}
