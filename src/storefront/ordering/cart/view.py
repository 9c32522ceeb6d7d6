"""Read model for a customer's cart, priced with the live catalogue."""

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.ordering.cart.cart import Cart
from storefront.ordering.cart.validation import CartValidator
from storefront.ordering.shipping import shipping_cost_for

CART_CURRENCY = "INR"


def cart_view(customer_id) -> dict:
    cart = current_domain.repository_for(Cart).for_customer(customer_id)
    lines = cart.snapshot() if cart else []
    products = current_domain.repository_for(Product).find_many(line["product_id"] for line in lines)

    items = []
    for line in lines:
        product = products.get(line["product_id"])
        items.append(
            {
                **line,
                "line_total": round(line["price"] * line["quantity"], 2),
                "product": product.to_summary() if product else None,
            }
        )

    subtotal = round(sum(item["line_total"] for item in items), 2)
    shipping = shipping_cost_for(subtotal)
    return {
        "cart_id": str(cart.id) if cart else None,
        "customer_id": str(customer_id),
        "items": items,
        "item_count": sum(item["quantity"] for item in items),
        "subtotal": subtotal,
        "shipping": shipping,
        "total": round(subtotal + shipping, 2),
        "currency": CART_CURRENCY,
        "issues": [v.to_dict() for v in CartValidator().validate(lines, products)],
    }
