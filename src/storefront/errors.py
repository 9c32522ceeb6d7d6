"""Error taxonomy for storefront operations.

Validation and not-found failures reuse Protean's own exceptions so that
field-level messages flow through unchanged. Conflicts carry the offending
details for the API layer.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

__all__ = [
    "NotFoundError",
    "StateConflictError",
    "StockError",
    "UpstreamNotificationError",
    "ValidationError",
]

NotFoundError = ObjectNotFoundError


class StateConflictError(InvalidOperationError):
    """An operation is not allowed in the current state of the aggregate."""

    def __init__(self, message: str, violations: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.violations = violations or []


class StockError(InvalidOperationError):
    """Requested quantity exceeds the sellable stock of a product."""

    def __init__(self, message: str, product_id: str | None = None, available_stock: int | None = None):
        super().__init__(message)
        self.message = message
        self.product_id = product_id
        self.available_stock = available_stock


class UpstreamNotificationError(Exception):
    """A notification channel failed to deliver. Never surfaced to callers."""

    def __init__(self, message: str, channel: str | None = None):
        super().__init__(message)
        self.message = message
        self.channel = channel
