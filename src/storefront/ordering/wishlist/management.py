"""Wishlist management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.ordering.cart.management import AddToCart, ManageCartHandler, load_listed_product
from storefront.ordering.wishlist.wishlist import Wishlist


@storefront.command(part_of="Wishlist")
class AddToWishlist:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class RemoveFromWishlist:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class MoveToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


def _existing_wishlist(customer_id) -> Wishlist:
    wishlist = current_domain.repository_for(Wishlist).for_customer(customer_id)
    if wishlist is None:
        raise ObjectNotFoundError({"wishlist": ["Wishlist not found"]})
    return wishlist


def _release_product(product_id) -> None:
    repo = current_domain.repository_for(Product)
    try:
        product = repo.get(product_id)
    except ObjectNotFoundError:
        return
    product.unwishlisted()
    repo.add(product)


@storefront.command_handler(part_of=Wishlist)
class ManageWishlistHandler:
    @handle(AddToWishlist)
    def add_to_wishlist(self, command):
        product = load_listed_product(command.product_id)
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.get_or_create(command.customer_id)
        wishlist.add(str(product.id))
        repo.add(wishlist)

        product.wishlisted()
        current_domain.repository_for(Product).add(product)

    @handle(RemoveFromWishlist)
    def remove_from_wishlist(self, command):
        wishlist = _existing_wishlist(command.customer_id)
        wishlist.remove(command.product_id)
        current_domain.repository_for(Wishlist).add(wishlist)
        _release_product(command.product_id)

    @handle(MoveToCart)
    def move_to_cart(self, command):
        wishlist = _existing_wishlist(command.customer_id)
        if not wishlist.contains(command.product_id):
            raise ObjectNotFoundError({"product_id": ["Product not in wishlist"]})

        item_id = ManageCartHandler().add_to_cart(
            AddToCart(
                customer_id=command.customer_id,
                product_id=command.product_id,
                quantity=command.quantity,
            )
        )

        wishlist.remove(command.product_id)
        current_domain.repository_for(Wishlist).add(wishlist)
        _release_product(command.product_id)
        return item_id
