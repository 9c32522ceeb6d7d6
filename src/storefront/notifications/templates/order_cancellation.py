"""Order cancellation: tells the customer what happens to their money."""

from storefront.notifications.types import NotificationType


def refund_status_text(payment: dict) -> str:
    if payment.get("status") == "refunded":
        return "Refund processed"
    if payment.get("method") == "cod":
        return "No payment to refund"
    return "Refund will be processed within 3-5 business days"


class OrderCancellationTemplate:
    notification_type = NotificationType.ORDER_CANCELLATION.value

    @staticmethod
    def render(context: dict) -> dict:
        order = context["order"]
        reason = context.get("reason") or "No reason given"
        return {
            "subject": f"Order {order['order_number']} cancelled",
            "body": (
                f"Your order {order['order_number']} has been cancelled.\n\n"
                f"Reason: {reason}\n"
                f"Order total: {order['total']:.2f}\n"
                f"Refund status: {refund_status_text(order['payment'])}\n"
            ),
        }
