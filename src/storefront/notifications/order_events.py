"""Order event handler: customer emails for placed, cancelled and updated orders.

Runs after the order's unit of work has committed. Every failure from here on
(reloading the order, rendering, delivery) is logged and dropped so it never
reaches the request that changed the order.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.errors import UpstreamNotificationError
from storefront.notifications.notifier import Notifier
from storefront.ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusUpdated
from storefront.ordering.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.event_handler(part_of=Order)
class OrderNotificationsHandler:
    def _deliver(self, event_name, order_id, send) -> None:
        """Reload the order and pass its view to ``send``."""
        try:
            view = current_domain.repository_for(Order).get(order_id).to_view()
            send(view)
        except UpstreamNotificationError as exc:
            logger.warning(
                "notification_failed",
                domain_event=event_name,
                order_id=str(order_id),
                channel=exc.channel,
                error=exc.message,
            )
        except Exception as exc:
            logger.error(
                "notification_failed",
                domain_event=event_name,
                order_id=str(order_id),
                error=str(exc),
                exc_info=True,
            )

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        self._deliver(
            "OrderPlaced",
            event.order_id,
            lambda view: Notifier().send_order_confirmation(event.customer_email, view),
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        self._deliver(
            "OrderCancelled",
            event.order_id,
            lambda view: Notifier().send_order_cancellation(event.customer_email, view, event.reason),
        )

    @handle(OrderStatusUpdated)
    def on_order_status_updated(self, event: OrderStatusUpdated) -> None:
        delta = {
            "previous_status": event.previous_status,
            "new_status": event.new_status,
            "previous_shipping_status": event.previous_shipping_status,
            "new_shipping_status": event.new_shipping_status,
            "has_status_changed": event.previous_status != event.new_status,
            "has_shipping_changed": event.previous_shipping_status != event.new_shipping_status,
            "tracking_added": event.tracking_added,
        }
        self._deliver(
            "OrderStatusUpdated",
            event.order_id,
            lambda view: Notifier().send_order_status_update(event.customer_email, view, delta),
        )
