"""Read-side queries over orders: customer history, admin listing and statistics.

Aggregates (counts, sums, averages per status) are computed in memory over the
fetched orders, grouped by the same keys the admin dashboard reports.
"""

import math
import re
from datetime import UTC, datetime, timedelta

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.ordering.order.cancellation import load_order
from storefront.ordering.order.order import Order, OrderStatus, PaymentStatus

CUSTOMER_PAGE_SIZE = 10
ADMIN_PAGE_SIZE = 20
RECENT_ORDERS = 10
ALL_STATUSES = "all"

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _newest_first(orders: list[Order]) -> list[Order]:
    return sorted(orders, key=lambda o: (o.created_at or _EPOCH, str(o.id)), reverse=True)


def _paginate(orders: list, page: int, limit: int) -> tuple[list, dict]:
    if page < 1 or limit < 1:
        raise ValidationError({"page": ["Page and limit must be 1 or greater"]})
    total = len(orders)
    pages = math.ceil(total / limit) if total else 0
    start = (page - 1) * limit
    return orders[start : start + limit], {
        "current_page": page,
        "total_pages": pages,
        "total_count": total,
        "has_next_page": page < pages,
        "has_prev_page": page > 1,
        "limit": limit,
    }


def customer_orders(customer_id, page: int = 1, limit: int = CUSTOMER_PAGE_SIZE) -> dict:
    orders = _newest_first(current_domain.repository_for(Order).for_customer(customer_id))
    page_items, pagination = _paginate(orders, page, limit)
    return {"orders": [o.to_view() for o in page_items], "pagination": pagination}


def customer_order(customer_id, order_id) -> dict:
    return load_order(order_id, customer_id).to_view()


def _matches_search(order: Order, pattern: re.Pattern) -> bool:
    phone = order.shipping_address.phone if order.shipping_address else ""
    return bool(pattern.search(order.order_number or "") or pattern.search(phone or ""))


def admin_orders(status: str | None = None, search: str | None = None, page: int = 1, limit: int = ADMIN_PAGE_SIZE):
    """Order list for the admin dashboard, with per-status statistics."""
    orders = current_domain.repository_for(Order).everything()

    if status and status != ALL_STATUSES:
        orders = [o for o in orders if o.status == status]
    if search and search.strip():
        pattern = re.compile(re.escape(search.strip()), re.IGNORECASE)
        orders = [o for o in orders if _matches_search(o, pattern)]

    page_items, pagination = _paginate(_newest_first(orders), page, limit)
    return {
        "orders": [o.to_view() for o in page_items],
        "pagination": pagination,
        "stats": status_breakdown(current_domain.repository_for(Order).everything()),
    }


def status_breakdown(orders: list[Order]) -> dict:
    """``{status: {count, total_amount}}`` for every status that has orders."""
    breakdown: dict[str, dict] = {}
    for order in orders:
        bucket = breakdown.setdefault(order.status, {"count": 0, "total_amount": 0.0})
        bucket["count"] += 1
        bucket["total_amount"] = round(bucket["total_amount"] + order.total, 2)
    return breakdown


def order_statistics(now: datetime | None = None) -> dict:
    now = now or datetime.now(UTC)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Weeks start on Sunday
    start_of_week = start_of_day - timedelta(days=(start_of_day.weekday() + 1) % 7)
    start_of_month = start_of_day.replace(day=1)

    orders = current_domain.repository_for(Order).everything()

    def _since(moment):
        return sum(1 for o in orders if o.created_at and o.created_at >= moment)

    total_revenue = round(sum(o.total for o in orders), 2)
    paid_revenue = round(sum(o.total for o in orders if o.payment.status == PaymentStatus.PAID.value), 2)

    return {
        "status_breakdown": status_breakdown(orders),
        "summary": {
            "total_orders": len(orders),
            "today_orders": _since(start_of_day),
            "week_orders": _since(start_of_week),
            "month_orders": _since(start_of_month),
            "total_revenue": total_revenue,
            "average_order_value": round(total_revenue / len(orders), 2) if orders else 0.0,
            "paid_revenue": paid_revenue,
            "cancelled_orders": sum(1 for o in orders if o.status == OrderStatus.CANCELLED.value),
        },
        "recent_orders": [
            {
                "id": str(o.id),
                "order_number": o.order_number,
                "status": o.status,
                "total": o.total,
                "customer_id": str(o.customer_id),
                "customer_name": o.customer_name,
                "created_at": o.created_at.isoformat() if o.created_at else None,
                "item_titles": [item.title for item in o.items],
            }
            for o in _newest_first(orders)[:RECENT_ORDERS]
        ],
    }
