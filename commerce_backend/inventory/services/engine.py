# inventory/services/engine.py

"""
ADJUSTMENT ENGINE (PURE)

compute_transition() is the single state-transition function for stock
quantities. It never touches the database.

Rules:
- ADD    -> new = current + quantity (always succeeds)
- REMOVE -> new = current - quantity (InsufficientStockError if new < 0)
- SET    -> new = quantity           (change = quantity - current)
- quantity must be a non-negative integer, type must be known
- quantities (requested and resulting) are bounded by MAX_STOCK_QTY,
  the largest value the inventory_qty column stores
- statuses are derived from quantities, never read from stored columns
"""

from __future__ import annotations

from dataclasses import dataclass

from django.db import models

from products.models.inventory_status import InventoryStatus, derive_inventory_status

from .exceptions import InsufficientStockError, InvalidInputError


# PositiveIntegerField upper bound (PostgreSQL integer).
MAX_STOCK_QTY = 2_147_483_647


class AdjustmentType(models.TextChoices):
    ADD = "ADD", "Add"
    REMOVE = "REMOVE", "Remove"
    SET = "SET", "Set"


@dataclass(frozen=True)
class Transition:
    previous_qty: int
    new_qty: int
    change_qty: int
    previous_status: str
    new_status: str

    @property
    def low_stock_crossed(self) -> bool:
        return is_low_stock_crossing(self.previous_status, self.new_status)


def derive_status(quantity: int, low_stock_threshold: int) -> str:
    return derive_inventory_status(quantity, low_stock_threshold)


def is_low_stock_crossing(previous_status: str, new_status: str) -> bool:
    """
    True only when a unit moves from IN_STOCK into LOW_STOCK/OUT_OF_STOCK.
    Staying low (or going LOW -> OUT) does not re-alert.
    """
    return previous_status == InventoryStatus.IN_STOCK and new_status in (
        InventoryStatus.LOW_STOCK,
        InventoryStatus.OUT_OF_STOCK,
    )


def normalize_quantity(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are non-negative integer units.
    """
    if value is None or value == "":
        raise InvalidInputError("quantity is required")

    if isinstance(value, bool):
        # bool is an int subclass
        raise InvalidInputError("quantity must be a whole integer unit")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        qty = int(value.strip())
    else:
        raise InvalidInputError("quantity must be a whole integer unit")

    if qty < 0:
        raise InvalidInputError("quantity cannot be negative", details={"quantity": qty})

    return qty


def normalize_adjustment_type(value) -> str:
    t = str(value or "").strip().upper()
    if t not in AdjustmentType.values:
        raise InvalidInputError(
            f"Unknown adjustment type: {value}",
            details={"allowed": list(AdjustmentType.values)},
        )
    return t


def compute_transition(
    current_qty: int,
    low_stock_threshold: int,
    *,
    quantity,
    adjustment_type,
    unit_name: str = "stock unit",
) -> Transition:
    qty = normalize_quantity(quantity)
    kind = normalize_adjustment_type(adjustment_type)

    if qty > MAX_STOCK_QTY:
        raise InvalidInputError(
            f"quantity cannot exceed {MAX_STOCK_QTY}",
            details={"quantity": qty, "max_quantity": MAX_STOCK_QTY},
        )

    current = int(current_qty or 0)

    if kind == AdjustmentType.ADD:
        new_qty = current + qty
    elif kind == AdjustmentType.REMOVE:
        new_qty = current - qty
        if new_qty < 0:
            raise InsufficientStockError(
                unit_name=unit_name,
                available=current,
                requested=qty,
            )
    else:
        new_qty = qty

    if new_qty > MAX_STOCK_QTY:
        raise InvalidInputError(
            f"Resulting quantity exceeds the maximum of {MAX_STOCK_QTY}",
            details={"current": current, "requested": qty, "max_quantity": MAX_STOCK_QTY},
        )

    return Transition(
        previous_qty=current,
        new_qty=new_qty,
        change_qty=new_qty - current,
        previous_status=derive_status(current, low_stock_threshold),
        new_status=derive_status(new_qty, low_stock_threshold),
    )
