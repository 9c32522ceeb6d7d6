"""FastAPI endpoints for customers placing, viewing and cancelling orders."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.schemas import CancelOrderRequest, CreateOrderRequest
from storefront.identity.principal import Customer, current_customer
from storefront.ordering.order.cancellation import CancelOrder
from storefront.ordering.order.checkout import PlaceOrder
from storefront.ordering.order.queries import CUSTOMER_PAGE_SIZE, customer_order, customer_orders

order_router = APIRouter(prefix="/orders", tags=["orders"])


def _encode_address(address):
    if address is None:
        return None
    if isinstance(address, str):
        return address
    return json.dumps(address.model_dump(exclude_none=True))


@order_router.post("", status_code=201)
async def create_order(body: CreateOrderRequest, customer: Customer = Depends(current_customer)):
    order = current_domain.process(
        PlaceOrder(
            customer_id=customer.customer_id,
            customer_email=customer.email,
            customer_name=customer.name,
            shipping_address=_encode_address(body.shipping_address),
            billing_address=_encode_address(body.billing_address),
            payment_method=body.payment_method,
            notes=body.notes,
        ),
        asynchronous=False,
    )
    return {"success": True, "message": "Order placed successfully", "data": order}


@order_router.get("")
async def list_orders(page: int = 1, limit: int = CUSTOMER_PAGE_SIZE, customer: Customer = Depends(current_customer)):
    return {"success": True, "data": customer_orders(customer.customer_id, page=page, limit=limit)}


@order_router.get("/{order_id}")
async def get_order(order_id: str, customer: Customer = Depends(current_customer)):
    return {"success": True, "data": customer_order(customer.customer_id, order_id)}


@order_router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    customer: Customer = Depends(current_customer),
):
    order = current_domain.process(
        CancelOrder(
            order_id=order_id,
            customer_id=customer.customer_id,
            reason=body.reason if body else None,
        ),
        asynchronous=False,
    )
    return {"success": True, "message": "Order cancelled successfully", "data": order}
