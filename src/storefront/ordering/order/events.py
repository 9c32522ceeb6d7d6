"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer checked out their cart and an order was created."""

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price}
    subtotal = Float(required=True)
    shipping_cost = Float(required=True)
    total = Float(required=True)
    payment_method = String(required=True)
    placed_at = DateTime()


@storefront.event(part_of="Order")
class OrderCancelled:
    """An order left the active lifecycle; its stock has been restored."""

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    reason = String()
    cancelled_by = String(required=True)
    payment_method = String()
    payment_status = String()
    cancelled_at = DateTime()


@storefront.event(part_of="Order")
class OrderStatusUpdated:
    """An administrator changed the order or shipping status, or added tracking."""

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    previous_status = String(required=True)
    new_status = String(required=True)
    previous_shipping_status = String()
    new_shipping_status = String()
    tracking_id = String()
    tracking_added = Boolean(default=False)
    updated_at = DateTime()
