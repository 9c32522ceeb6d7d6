"""FastAPI endpoints for the admin order dashboard."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.schemas import AdminUpdateOrderRequest, CancelOrderRequest
from storefront.identity.principal import MANAGE_ORDERS, Admin, require_permission
from storefront.ordering.order.administration import AdminUpdateOrder
from storefront.ordering.order.cancellation import CancelOrder, load_order
from storefront.ordering.order.queries import ADMIN_PAGE_SIZE, admin_orders, order_statistics

admin_order_router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])

_manage_orders = require_permission(MANAGE_ORDERS)


@admin_order_router.get("")
async def list_orders(
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = ADMIN_PAGE_SIZE,
    admin: Admin = Depends(_manage_orders),
):
    return {"success": True, "data": admin_orders(status=status, search=search, page=page, limit=limit)}


@admin_order_router.get("/stats")
async def stats(admin: Admin = Depends(_manage_orders)):
    return {"success": True, "data": order_statistics()}


@admin_order_router.get("/{order_id}")
async def get_order(order_id: str, admin: Admin = Depends(_manage_orders)):
    return {"success": True, "data": load_order(order_id).to_view()}


@admin_order_router.patch("/{order_id}")
async def update_order(order_id: str, body: AdminUpdateOrderRequest, admin: Admin = Depends(_manage_orders)):
    result = current_domain.process(
        AdminUpdateOrder(order_id=order_id, admin_id=admin.admin_id, **body.model_dump(exclude_none=True)),
        asynchronous=False,
    )
    return {"success": True, "message": "Order updated successfully", "data": result}


@admin_order_router.post("/{order_id}/cancel")
async def cancel_order(order_id: str, body: CancelOrderRequest | None = None, admin: Admin = Depends(_manage_orders)):
    order = current_domain.process(
        CancelOrder(order_id=order_id, reason=body.reason if body else None),
        asynchronous=False,
    )
    return {"success": True, "message": "Order cancelled successfully", "data": order}
