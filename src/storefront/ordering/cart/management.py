"""Cart management: commands and handler.

Adding and updating lines are checked against the catalogue; a rejected change
is never persisted.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import StateConflictError, StockError
from storefront.ordering.cart.cart import Cart
from storefront.ordering.cart.validation import CartValidator


@storefront.command(part_of="Cart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)
    variants = Text()  # JSON object of selected variant options


@storefront.command(part_of="Cart")
class UpdateCartItem:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    customer_id = Identifier(required=True)


def load_listed_product(product_id) -> Product:
    """A product that can be carted right now, or NotFound."""
    try:
        product = current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        product = None
    if product is None or not product.is_listed:
        raise ObjectNotFoundError({"product": ["Product not found or unavailable"]})
    return product


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = load_listed_product(command.product_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.customer_id)
        variants = json.loads(command.variants) if command.variants else {}
        item = cart.add_item(
            product_id=str(product.id),
            quantity=command.quantity,
            price=product.pricing.selling,
            variants=variants,
        )

        violations = CartValidator().validate_items(cart.snapshot())
        if violations:
            raise StateConflictError(
                "Cart validation failed",
                violations=[v.to_dict() for v in violations],
            )

        repo.add(cart)
        return str(item.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(command.customer_id)
        if cart is None:
            raise ObjectNotFoundError({"cart": ["Cart not found"]})

        item = cart.find_item(command.item_id)
        try:
            product = current_domain.repository_for(Product).get(item.product_id)
        except ObjectNotFoundError:
            raise ObjectNotFoundError({"product": ["Product not found"]}) from None

        # Other variants of the same product draw on the same stock
        other_lines = sum(
            line.quantity for line in cart.items if line.product_id == item.product_id and line.id != item.id
        )
        if product.stock.track_inventory and product.available_stock < other_lines + command.quantity:
            raise StockError(
                "Insufficient stock available",
                product_id=str(product.id),
                available_stock=max(product.available_stock, 0),
            )

        cart.update_item_quantity(command.item_id, command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(command.customer_id)
        if cart is None:
            raise ObjectNotFoundError({"cart": ["Cart not found"]})
        cart.remove_item(command.item_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(command.customer_id)
        if cart is None:
            return
        cart.clear()
        repo.add(cart)
