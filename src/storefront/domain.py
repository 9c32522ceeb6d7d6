"""Storefront domain: catalogue, cart, checkout and order lifecycle.

A single domain keeps Product, Cart and Order inside one unit of work so that
checkout and cancellation mutate stock and orders together.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
