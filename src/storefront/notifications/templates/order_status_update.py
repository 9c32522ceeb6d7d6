"""Order status update: order or shipping status moved, or tracking was added."""

from storefront.notifications.types import NotificationType


def _label(status: str | None) -> str:
    return (status or "").replace("_", " ").title()


class OrderStatusUpdateTemplate:
    notification_type = NotificationType.ORDER_STATUS_UPDATE.value

    @staticmethod
    def render(context: dict) -> dict:
        order = context["order"]
        delta = context["status_delta"]
        lines = [f"Order {order['order_number']} update:"]
        if delta.get("has_status_changed"):
            lines.append(f"Status: {_label(delta['previous_status'])} -> {_label(delta['new_status'])}")
        if delta.get("has_shipping_changed"):
            lines.append(
                f"Shipping: {_label(delta['previous_shipping_status'])} -> {_label(delta['new_shipping_status'])}"
            )
        shipping = order.get("shipping") or {}
        if shipping.get("tracking_id"):
            courier = f" ({shipping['courier_name']})" if shipping.get("courier_name") else ""
            lines.append(f"Tracking: {shipping['tracking_id']}{courier}")
        if shipping.get("estimated_delivery"):
            lines.append(f"Estimated delivery: {shipping['estimated_delivery'][:10]}")
        return {
            "subject": f"Order {order['order_number']} is {_label(delta.get('new_status'))}",
            "body": "\n".join(lines) + "\n",
        }
