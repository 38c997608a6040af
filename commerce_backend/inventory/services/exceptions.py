# inventory/services/exceptions.py

"""
Inventory domain errors.

Every error carries a stable `code` (used by the HTTP layer) and a
`details` dict safe to return to clients.
"""


class InventoryServiceError(Exception):
    code = "INVENTORY_ERROR"

    def __init__(self, message: str = "", *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self):
        return self.message


class InvalidInputError(InventoryServiceError):
    """Malformed quantity, unknown type/reason, oversize batch."""

    code = "INVALID_INPUT"


class StockUnitNotFoundError(InventoryServiceError):
    """
    Product/variant missing, soft-deleted, or owned by another store.
    The message never distinguishes between those cases.
    """

    code = "NOT_FOUND"


class InsufficientStockError(InventoryServiceError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, unit_name: str, available: int, requested: int, details: dict | None = None):
        self.unit_name = unit_name
        self.available = int(available)
        self.requested = int(requested)

        merged = {"available": self.available, "requested": self.requested}
        merged.update(details or {})

        super().__init__(
            f"Insufficient stock for {unit_name}. Available: {self.available}, Requested: {self.requested}",
            details=merged,
        )


class TransactionConflictError(InventoryServiceError):
    """Lock timeout or serialization failure. Safe to retry."""

    code = "TRANSACTION_CONFLICT"


class StoreNotFoundError(InventoryServiceError):
    code = "NOT_FOUND"
