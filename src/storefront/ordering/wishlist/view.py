"""Read model for a customer's wishlist."""

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.ordering.wishlist.wishlist import Wishlist


def wishlist_view(customer_id) -> dict:
    wishlist = current_domain.repository_for(Wishlist).for_customer(customer_id)
    entries = list(wishlist.items) if wishlist else []
    products = current_domain.repository_for(Product).find_many(e.product_id for e in entries)
    return {
        "customer_id": str(customer_id),
        "items": [
            {
                "product_id": str(entry.product_id),
                "added_at": entry.added_at.isoformat() if entry.added_at else None,
                "product": products[str(entry.product_id)].to_summary()
                if str(entry.product_id) in products
                else None,
            }
            for entry in entries
        ],
    }
