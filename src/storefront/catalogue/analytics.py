"""Per-product analytics report for the admin catalogue.

Lifetime counters come from the product itself. Sales inside the reporting
window are summed from orders created in it, cancelled orders excluded.
"""

from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.ordering.order.order import Order, OrderStatus

DEFAULT_PERIOD = "30d"

# Unknown periods fall back to the default window
_PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}


def period_window(period: str | None, now: datetime | None = None) -> tuple[datetime, datetime, str]:
    end = now or datetime.now(UTC)
    period = period if period in _PERIOD_DAYS else DEFAULT_PERIOD
    return end - timedelta(days=_PERIOD_DAYS[period]), end, period


def product_analytics(product_id, period: str = DEFAULT_PERIOD, now: datetime | None = None) -> dict:
    product = current_domain.repository_for(Product).get(product_id)
    start, end, period = period_window(period, now)

    orders = units = 0
    revenue = 0.0
    for order in current_domain.repository_for(Order).everything():
        if order.status == OrderStatus.CANCELLED.value or not order.created_at:
            continue
        if not start <= order.created_at <= end:
            continue
        lines = [item for item in order.items if str(item.product_id) == str(product.id)]
        if not lines:
            continue
        orders += 1
        units += sum(item.quantity for item in lines)
        revenue += sum(item.quantity * item.unit_price for item in lines)

    return {
        "product": {"id": str(product.id), "title": product.title, "sku": product.sku},
        "analytics": {
            "views": product.analytics.views,
            "purchases": product.analytics.purchases,
            "wishlist_count": product.analytics.wishlist_count,
        },
        "period": {"start_date": start.isoformat(), "end_date": end.isoformat(), "period": period},
        "period_sales": {"orders": orders, "units": units, "revenue": round(revenue, 2)},
    }
