"""
Inventory Service — Error taxonomy

Every failure the purchase core can report to a caller is a subclass of
InventoryError. The API layer renders them with their status_code/title;
nothing else needs to know about HTTP.
"""


class InventoryError(Exception):
    status_code: int = 400
    title: str = "Bad request"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidArgument(InventoryError):
    """Bad input, rejected before any side effect."""
    title = "Invalid argument"


class NotFound(InventoryError):
    """Referenced stock or product record is absent."""
    title = "Not found"


class AlreadyExists(InventoryError):
    title = "Already exists"


class InsufficientStock(InventoryError):
    title = "Insufficient stock"

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"available={available}, requested={requested}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class UpstreamUnavailable(InventoryError):
    """Product lookup gave no usable answer (retries exhausted / breaker open)."""
    status_code = 503
    title = "Upstream unavailable"


class InternalFailure(InventoryError):
    status_code = 500
    title = "Internal server error"
