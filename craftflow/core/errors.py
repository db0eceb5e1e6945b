"""Domain errors raised by the ledger.

All of them are synchronous, never retried, and leave the ledger unchanged.
"""


class LedgerError(Exception):
    """Base class for ledger rejections."""


class NotFoundError(LedgerError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InsufficientStockError(LedgerError):
    def __init__(self, product_id: str, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available}, requested: {requested}"
        )


class ValidationError(LedgerError):
    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class DuplicateBarcodeError(ValidationError):
    def __init__(self, barcode: str, existing_product_id: str):
        self.barcode = barcode
        self.existing_product_id = existing_product_id
        super().__init__(
            f"Barcode {barcode} is already assigned to product {existing_product_id}",
            field="barcode",
        )


__all__ = [
    "DuplicateBarcodeError",
    "InsufficientStockError",
    "LedgerError",
    "NotFoundError",
    "ValidationError",
]
