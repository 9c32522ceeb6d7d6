"""Shipping cost stub: a flat rate per order, overridable via ``FLAT_SHIPPING_RATE``."""

import os

DEFAULT_FLAT_RATE = 85.0
ESTIMATED_DELIVERY_DAYS = 7


def shipping_cost_for(subtotal: float) -> float:
    """Shipping charged on an order or cart of the given subtotal."""
    return float(os.environ.get("FLAT_SHIPPING_RATE", DEFAULT_FLAT_RATE))
