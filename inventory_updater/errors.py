"""Error taxonomy for the inventory updater.

Every error carries the HTTP status the web layer answers with. Inventory
errors are raised by the API client and caught per line item by the
processor, so one bad variant never aborts the rest of an order.
"""

from __future__ import annotations


class InventoryUpdaterError(Exception):
    """Base class for all service errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationError(InventoryUpdaterError):
    """Missing or invalid webhook signature."""

    status_code = 401


class ValidationError(InventoryUpdaterError):
    """Malformed request input."""

    status_code = 400


class UnexpectedError(InventoryUpdaterError):
    """Anything not covered by a more specific error."""


class InventoryError(InventoryUpdaterError):
    """A Shopify inventory call failed for one variant."""

    def __init__(self, message: str, variant_id: int | str | None = None):
        self.variant_id = variant_id
        super().__init__(message)


class ResolutionError(InventoryError):
    """Variant or inventory item lookup failed."""


class NoInventoryLevelError(InventoryError):
    """The inventory item has no usable inventory level."""


class AdjustmentError(InventoryError):
    """The adjustment call was rejected by Shopify."""
