"""Order confirmation: sent once checkout succeeds."""

from storefront.notifications.types import NotificationType


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value

    @staticmethod
    def render(context: dict) -> dict:
        order = context["order"]
        lines = "\n".join(
            f"  - {item['title']} x {item['quantity']} @ {item['unit_price']:.2f}" for item in order["items"]
        )
        address = order.get("shipping_address") or {}
        return {
            "subject": f"Order {order['order_number']} confirmed",
            "body": (
                f"Hi {context.get('customer_name') or 'there'},\n\n"
                f"Thanks for your order {order['order_number']}.\n\n"
                f"{lines}\n\n"
                f"Subtotal: {order['subtotal']:.2f}\n"
                f"Shipping: {order['shipping']['cost']:.2f}\n"
                f"Total: {order['total']:.2f}\n"
                f"Payment: {order['payment']['method']} ({order['payment']['status']})\n\n"
                f"Shipping to: {address.get('street')}, {address.get('city')} {address.get('pincode')}\n"
            ),
        }
