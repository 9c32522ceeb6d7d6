"""Notifier: renders a template and hands it to the email channel.

Every send either succeeds or raises ``UpstreamNotificationError``. Callers on
the order path catch it and log; a notification never decides the outcome of
an order mutation.
"""

import structlog

from storefront.errors import UpstreamNotificationError
from storefront.notifications.channel import get_email_channel
from storefront.notifications.templates import get_template
from storefront.notifications.types import NotificationType

logger = structlog.get_logger(__name__)


class Notifier:
    def __init__(self, channel=None):
        self.channel = channel or get_email_channel()

    def _send(self, email: str | None, notification_type: NotificationType, context: dict) -> dict:
        if not email:
            raise UpstreamNotificationError(f"No recipient address for {notification_type.value}", channel="email")

        try:
            content = get_template(notification_type.value).render(context)
            result = self.channel.send(to=email, subject=content["subject"], body=content["body"])
        except Exception as exc:
            raise UpstreamNotificationError(str(exc), channel="email") from exc

        if result.get("status") != "sent":
            raise UpstreamNotificationError(result.get("error") or "Email delivery failed", channel="email")

        logger.debug("notification_sent", notification_type=notification_type.value, message_id=result["message_id"])
        return result

    def send_order_confirmation(self, email, order_view: dict) -> dict:
        return self._send(
            email,
            NotificationType.ORDER_CONFIRMATION,
            {"order": order_view, "customer_name": order_view.get("customer_name")},
        )

    def send_order_cancellation(self, email, order_view: dict, reason=None) -> dict:
        return self._send(
            email,
            NotificationType.ORDER_CANCELLATION,
            {"order": order_view, "reason": reason},
        )

    def send_order_status_update(self, email, order_view: dict, status_delta: dict) -> dict:
        return self._send(
            email,
            NotificationType.ORDER_STATUS_UPDATE,
            {"order": order_view, "status_delta": status_delta},
        )

    def send_registration_otp(self, email, name, otp, ttl_minutes) -> dict:
        return self._send(
            email,
            NotificationType.REGISTRATION_OTP,
            {"name": name, "otp": otp, "ttl_minutes": ttl_minutes},
        )
