"""Checkout: turns a customer's validated cart into an order.

Order creation, stock decrement and cart clearing happen in one unit of work.
All inputs and the cart are validated before any of them is touched.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import StateConflictError
from storefront.inventory.reconciler import InventoryReconciler
from storefront.ordering.cart.cart import Cart
from storefront.ordering.cart.validation import CartValidator
from storefront.ordering.order.order import Order, PaymentMethod, build_shipping_address, enum_value
from storefront.ordering.shipping import shipping_cost_for

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    customer_email = String(max_length=255)
    customer_name = String(max_length=255)
    shipping_address = Text()  # JSON object, or a bare street line
    billing_address = Text()  # JSON object; defaults to the shipping address
    payment_method = String(max_length=20)
    notes = Text()


def parse_address(value):
    """Addresses travel as JSON objects; anything else is treated as a street line."""
    if isinstance(value, str) and value.strip().startswith("{"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise ValidationError({"shipping_address": ["Shipping address is not valid JSON"]}) from None
    return value


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        shipping_address = build_shipping_address(parse_address(command.shipping_address))
        billing_address = (
            build_shipping_address(parse_address(command.billing_address), field_name="billing_address")
            if command.billing_address
            else None
        )
        if not command.payment_method:
            raise ValidationError({"payment_method": ["Payment method is required"]})
        payment_method = enum_value(PaymentMethod, command.payment_method, "payment_method")

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.for_customer(command.customer_id)
        if cart is None or cart.is_empty:
            raise ValidationError({"cart": ["Cart is empty"]})

        lines = cart.snapshot()
        products = current_domain.repository_for(Product).find_many(line["product_id"] for line in lines)
        violations = CartValidator().validate(lines, products)
        if violations:
            logger.info(
                "checkout_rejected",
                customer_id=str(command.customer_id),
                violations=len(violations),
            )
            raise StateConflictError(
                "Some items in your cart are unavailable",
                violations=[v.to_dict() for v in violations],
            )

        order_lines = [
            {
                "product_id": line["product_id"],
                "title": products[line["product_id"]].title,
                "sku": products[line["product_id"]].sku,
                "quantity": line["quantity"],
                "unit_price": line["price"],
                "variants": line["variants"],
            }
            for line in lines
        ]
        subtotal = sum(line["unit_price"] * line["quantity"] for line in order_lines)

        order = Order.place(
            customer_id=command.customer_id,
            customer_email=command.customer_email,
            customer_name=command.customer_name,
            lines=order_lines,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=payment_method,
            shipping_cost=shipping_cost_for(subtotal),
            notes=command.notes,
        )

        sold = InventoryReconciler().apply_order_creation(order.item_quantities())

        cart.clear()
        cart_repo.add(cart)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=order.customer_id,
            total=order.total,
        )
        view = order.to_view()
        for item in view["items"]:
            item["product"] = sold[item["product_id"]].to_summary()
        return view
