"""Exceptions raised by the POS core."""


class PosError(Exception):
    """Base class for recoverable errors shown to the user."""


class ValidationError(PosError):
    """Required input is missing or invalid (empty cart, blank name, ...)."""


class OutOfStock(PosError):
    """A managed-stock product with no units left was added to the cart."""


class StockExceeded(PosError):
    """Requested quantity is above the product's available stock."""

    def __init__(self, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}"
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class AlreadyRefunded(PosError):
    """Refund attempted on a sale whose status is already terminal."""


class ImportParseError(PosError):
    """Backup document could not be parsed; nothing was imported."""


class StoragePersistFailure(PosError):
    """Writing a snapshot to the store failed."""
