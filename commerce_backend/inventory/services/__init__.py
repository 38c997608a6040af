from .exceptions import (
    InsufficientStockError,
    InvalidInputError,
    InventoryServiceError,
    StockUnitNotFoundError,
    StoreNotFoundError,
    TransactionConflictError,
)
from .inventory_service import (
    AdjustmentResult,
    BulkAdjustmentResult,
    RestorationResult,
    adjust_stock,
    bulk_adjust,
    deduct_stock_for_order,
    restore_stock_for_cancellation,
    restore_stock_for_return,
    update_inventory_from_external,
)

__all__ = [
    "InsufficientStockError",
    "InvalidInputError",
    "InventoryServiceError",
    "StockUnitNotFoundError",
    "StoreNotFoundError",
    "TransactionConflictError",
    "AdjustmentResult",
    "BulkAdjustmentResult",
    "RestorationResult",
    "adjust_stock",
    "bulk_adjust",
    "deduct_stock_for_order",
    "restore_stock_for_cancellation",
    "restore_stock_for_return",
    "update_inventory_from_external",
]
