# inventory/models/reasons.py

"""
INVENTORY ADJUSTMENT REASON CODES

Closed set of reasons stored on every InventoryLog row.
Used for analytics, auditing and filtering history.
"""

from django.db import models


class InventoryReason(models.TextChoices):
    ORDER_CREATED = "order_created", "Order Created"
    ORDER_CANCELLED = "order_cancelled", "Order Cancelled"
    RETURN_PROCESSED = "return_processed", "Return Processed"
    MANUAL_ADJUSTMENT = "manual_adjustment", "Manual Adjustment"
    RESTOCK = "restock", "Restock"
    DAMAGED = "damaged", "Damaged"
    LOST = "lost", "Lost"
    FOUND = "found", "Found"
    STOCK_TRANSFER = "stock_transfer", "Stock Transfer"
    INVENTORY_COUNT = "inventory_count", "Inventory Count"
    EXPIRED = "expired", "Expired"
    THEFT = "theft", "Theft"
    EXTERNAL_SYNC = "external_sync", "External Sync"


def reason_label(code: str) -> str:
    try:
        return InventoryReason(code).label
    except ValueError:
        return code
