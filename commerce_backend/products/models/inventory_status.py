# products/models/inventory_status.py

"""
INVENTORY STATUS (DERIVED)

Status is a pure function of (quantity, low_stock_threshold):
- OUT_OF_STOCK  iff quantity == 0
- LOW_STOCK     iff 0 < quantity <= low_stock_threshold
- IN_STOCK      otherwise

Rows store the derived value for cheap filtering, but it is recomputed on
every save and never accepted from callers.
"""

from django.db import models


class InventoryStatus(models.TextChoices):
    IN_STOCK = "IN_STOCK", "In Stock"
    LOW_STOCK = "LOW_STOCK", "Low Stock"
    OUT_OF_STOCK = "OUT_OF_STOCK", "Out of Stock"


LOW_STATUSES = frozenset({InventoryStatus.LOW_STOCK, InventoryStatus.OUT_OF_STOCK})


def derive_inventory_status(quantity: int, low_stock_threshold: int) -> str:
    qty = int(quantity or 0)
    if qty <= 0:
        return InventoryStatus.OUT_OF_STOCK
    if qty <= int(low_stock_threshold or 0):
        return InventoryStatus.LOW_STOCK
    return InventoryStatus.IN_STOCK
