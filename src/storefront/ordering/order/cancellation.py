"""Order cancellation: command and handler.

The status check inside ``Order.cancel`` runs before stock is restored and the
status flips to cancelled in the same unit of work, so a second cancellation
is rejected instead of restoring stock twice.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.inventory.reconciler import InventoryReconciler
from storefront.ordering.order.order import CancellationActor, Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    customer_id = Identifier()  # When set, the order must belong to this customer
    reason = String(max_length=500)


def load_order(order_id, customer_id=None) -> Order:
    """Load an order, hiding other customers' orders behind NotFound."""
    order = current_domain.repository_for(Order).get(order_id)
    if customer_id is not None and str(order.customer_id) != str(customer_id):
        raise ObjectNotFoundError({"order": ["Order not found"]})
    return order


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id, command.customer_id)
        order.cancel(
            reason=command.reason,
            cancelled_by=CancellationActor.CUSTOMER.value if command.customer_id else CancellationActor.ADMIN.value,
        )

        InventoryReconciler().apply_order_cancellation(order.item_quantities())
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            reason=command.reason,
            payment_status=order.payment.status,
        )
        return order.to_view()
