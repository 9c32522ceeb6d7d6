"""Admin order manager: status, shipping, tracking and payment updates.

Delegates the rules to ``Order.apply_admin_update`` and restores stock when an
admin moves an order into cancelled. Customer notification follows from the
``OrderStatusUpdated`` event the order raises only when something the
customer cares about changed.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.inventory.reconciler import InventoryReconciler
from storefront.ordering.order.cancellation import load_order
from storefront.ordering.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class AdminUpdateOrder:
    order_id = Identifier(required=True)
    admin_id = Identifier()
    status = String(max_length=20)
    shipping_status = String(max_length=30)
    tracking_id = String(max_length=255)
    awb_number = String(max_length=255)
    courier_name = String(max_length=255)
    payment_status = String(max_length=20)
    transaction_id = String(max_length=255)
    notes = Text()


@storefront.command_handler(part_of=Order)
class AdminOrderHandler:
    @handle(AdminUpdateOrder)
    def update_order(self, command):
        order = load_order(command.order_id)
        delta = order.apply_admin_update(
            status=command.status,
            shipping_status=command.shipping_status,
            tracking_id=command.tracking_id,
            awb_number=command.awb_number,
            courier_name=command.courier_name,
            payment_status=command.payment_status,
            transaction_id=command.transaction_id,
            notes=command.notes,
        )

        if delta.pop("restock_required"):
            InventoryReconciler().apply_order_cancellation(order.item_quantities())

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_updated",
            order_id=str(order.id),
            admin_id=command.admin_id,
            previous_status=delta["previous_status"],
            new_status=delta["new_status"],
            previous_shipping_status=delta["previous_shipping_status"],
            new_shipping_status=delta["new_shipping_status"],
        )
        return {"order": order.to_view(), "status_update": delta}
