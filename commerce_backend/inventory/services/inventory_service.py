# inventory/services/inventory_service.py

"""
INVENTORY SERVICE (ATOMIC STOCK MUTATIONS)

Every stock mutation in the system goes through this module:
- adjust_stock                      (single unit, manual/admin)
- deduct_stock_for_order            (all-or-nothing across order lines)
- restore_stock_for_cancellation    (per-item tolerant)
- restore_stock_for_return          (per-item tolerant)
- bulk_adjust                       (independent per-item outcomes)
- update_inventory_from_external    (marketplace sync, SET semantics)

GUARANTEES:
- quantity never goes negative (engine + DB CHECK)
- exactly one InventoryLog per successful mutation, same transaction
- nothing is written for a rejected mutation
- the authoritative row is locked (SELECT ... FOR UPDATE) before it is read,
  so concurrent writers on the same unit serialize and never lose updates

Concurrency:
- no global lock; only the stock-unit rows touched are locked
- multi-unit operations lock in sorted unit-key order (deadlock-free)
- on PostgreSQL, SET LOCAL lock_timeout bounds lock waits; a timeout,
  deadlock or serialization failure surfaces as TransactionConflictError
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field

from django.conf import settings
from django.db import DatabaseError, OperationalError, connection, transaction
from django.utils import timezone

from inventory.models import AuditLog, InventoryLog, InventoryReason

from .engine import (
    AdjustmentType,
    Transition,
    compute_transition,
    normalize_adjustment_type,
    normalize_quantity,
)
from .exceptions import (
    InvalidInputError,
    InventoryServiceError,
    StockUnitNotFoundError,
    TransactionConflictError,
)
from .stock_units import StockUnit, resolve_skus, resolve_stock_unit

logger = logging.getLogger(__name__)


# ============================================================
# RESULT SHAPES
# ============================================================

@dataclass(frozen=True)
class AdjustmentResult:
    unit: StockUnit
    log: InventoryLog
    transition: Transition
    alert: AuditLog | None = None

    @property
    def previous_qty(self) -> int:
        return self.transition.previous_qty

    @property
    def new_qty(self) -> int:
        return self.transition.new_qty

    @property
    def status(self) -> str:
        return self.transition.new_status


@dataclass(frozen=True)
class RestorationResult:
    restored: list = field(default_factory=list)
    skipped: list = field(default_factory=list)


@dataclass
class BulkAdjustmentResult:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": list(self.errors),
        }


# ============================================================
# HELPERS
# ============================================================

def normalize_reason(value) -> str:
    reason = str(value or "").strip().lower()
    if reason not in InventoryReason.values:
        raise InvalidInputError(
            f"Unknown reason: {value}",
            details={"allowed": list(InventoryReason.values)},
        )
    return reason


def _actor(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user


def _item_value(item, name, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _unit_key(product_id, variant_id) -> tuple[str, str]:
    return (str(product_id or ""), str(variant_id or ""))


def _apply_lock_timeout() -> None:
    """
    Bound lock waits for the current transaction (PostgreSQL only).
    SQLite has no row locks; the setting is a no-op there.
    """
    if connection.vendor != "postgresql":
        return

    timeout_ms = int(getattr(settings, "INVENTORY_LOCK_TIMEOUT_MS", 3000) or 0)
    if timeout_ms <= 0:
        return

    with connection.cursor() as cursor:
        cursor.execute(f"SET LOCAL lock_timeout = {timeout_ms}")


@contextmanager
def _conflicts_as_domain_errors(operation: str, **context):
    """
    Translate lock timeouts / deadlocks / serialization failures raised by
    the database into TransactionConflictError. Must wrap the atomic block
    so the rollback has already happened when the error is raised.
    """
    try:
        yield
    except OperationalError as exc:
        logger.warning(
            "Inventory transaction conflict",
            extra={"operation": operation, "error": str(exc), **context},
        )
        raise TransactionConflictError(
            "Stock is being modified by another request. Please retry.",
            details={"operation": operation},
        ) from exc


def _apply_to_unit(
    unit: StockUnit,
    *,
    quantity: int,
    adjustment_type: str,
    reason: str,
    note: str = "",
    user=None,
    order=None,
) -> AdjustmentResult:
    """
    Engine + persist + ledger + alert for an already-locked unit.
    Caller owns the transaction.
    """
    transition = compute_transition(
        unit.quantity,
        unit.low_stock_threshold,
        quantity=quantity,
        adjustment_type=adjustment_type,
        unit_name=unit.name,
    )

    unit.apply_quantity(transition.new_qty)

    log = InventoryLog.objects.create(
        store_id=unit.product.store_id,
        product=unit.product,
        variant=unit.variant,
        order=order,
        sku=unit.sku,
        product_name=unit.name,
        previous_qty=transition.previous_qty,
        new_qty=transition.new_qty,
        change_qty=transition.change_qty,
        reason=reason,
        note=note or "",
        user=_actor(user),
    )

    alert = None
    if transition.low_stock_crossed:
        alert = AuditLog.objects.create(
            store_id=unit.product.store_id,
            action=AuditLog.Action.LOW_STOCK_ALERT,
            entity_type=unit.entity_type,
            entity_id=unit.row.id,
            changes={
                "product_id": str(unit.product_id),
                "variant_id": str(unit.variant_id) if unit.variant_id else None,
                "sku": unit.sku,
                "previous_status": transition.previous_status,
                "new_status": transition.new_status,
                "current_stock": transition.new_qty,
                "threshold": unit.low_stock_threshold,
                "timestamp": timezone.now().isoformat(),
            },
        )

    return AdjustmentResult(unit=unit, log=log, transition=transition, alert=alert)


def _report_alerts(results) -> None:
    for result in results:
        if result.alert is None:
            continue
        logger.warning(
            "Low stock alert",
            extra={
                "store_id": str(result.unit.product.store_id),
                "product_id": str(result.unit.product_id),
                "variant_id": str(result.unit.variant_id) if result.unit.variant_id else None,
                "sku": result.unit.sku,
                "new_status": result.transition.new_status,
                "current_stock": result.transition.new_qty,
                "threshold": result.unit.low_stock_threshold,
            },
        )


def _tag_item_error(exc: InventoryServiceError, *, index: int, product_id, variant_id):
    exc.item_index = index
    exc.product_id = product_id
    exc.variant_id = variant_id
    exc.details.update(
        {
            "item_index": index,
            "product_id": str(product_id) if product_id else None,
            "variant_id": str(variant_id) if variant_id else None,
        }
    )
    return exc


# ============================================================
# SINGLE ADJUSTMENT
# ============================================================

def adjust_stock(
    *,
    store,
    product_id,
    variant_id=None,
    quantity,
    adjustment_type,
    reason,
    note: str = "",
    user=None,
    order=None,
) -> AdjustmentResult:
    """
    Adjust one stock unit atomically.

    adjustment_type:
      ADD    -> +quantity
      REMOVE -> -quantity (rejected if it would go below zero)
      SET    -> quantity becomes the absolute on-hand value
    """
    qty = normalize_quantity(quantity)
    kind = normalize_adjustment_type(adjustment_type)
    reason = normalize_reason(reason)

    with _conflicts_as_domain_errors(
        "adjust_stock", product_id=str(product_id), variant_id=str(variant_id or "")
    ):
        with transaction.atomic():
            _apply_lock_timeout()
            unit = resolve_stock_unit(
                store=store,
                product_id=product_id,
                variant_id=variant_id,
                lock=True,
            )
            result = _apply_to_unit(
                unit,
                quantity=qty,
                adjustment_type=kind,
                reason=reason,
                note=note,
                user=user,
                order=order,
            )

    logger.info(
        "Stock adjusted",
        extra={
            "product_id": str(unit.product_id),
            "variant_id": str(unit.variant_id) if unit.variant_id else None,
            "adjustment_type": kind,
            "reason": reason,
            "previous_qty": result.previous_qty,
            "new_qty": result.new_qty,
        },
    )
    _report_alerts([result])
    return result


# ============================================================
# ORDER DEDUCTION (ALL-OR-NOTHING)
# ============================================================

def _normalize_order_lines(items) -> list[dict]:
    if not items:
        raise InvalidInputError("Order has no items")

    lines = []
    for idx, item in enumerate(items):
        product_id = _item_value(item, "product_id")
        variant_id = _item_value(item, "variant_id")

        try:
            qty = normalize_quantity(_item_value(item, "quantity"))
            if qty < 1:
                raise InvalidInputError("quantity must be at least 1")
        except InvalidInputError as exc:
            raise _tag_item_error(exc, index=idx, product_id=product_id, variant_id=variant_id)

        lines.append(
            {
                "index": idx,
                "product_id": product_id,
                "variant_id": variant_id,
                "quantity": qty,
                "key": _unit_key(product_id, variant_id),
            }
        )
    return lines


def _lock_units_in_order(*, store, lines) -> dict:
    """
    Lock every distinct unit referenced by `lines`, in sorted key order.
    Raises (tagged) StockUnitNotFoundError for the first missing unit.
    """
    first_line_for_key = {}
    for line in lines:
        first_line_for_key.setdefault(line["key"], line)

    units = {}
    for key in sorted(first_line_for_key):
        line = first_line_for_key[key]
        try:
            units[key] = resolve_stock_unit(
                store=store,
                product_id=line["product_id"],
                variant_id=line["variant_id"],
                lock=True,
            )
        except StockUnitNotFoundError as exc:
            raise _tag_item_error(
                exc,
                index=line["index"],
                product_id=line["product_id"],
                variant_id=line["variant_id"],
            )
    return units


def deduct_stock_for_order(*, store, items, order, user=None) -> list[AdjustmentResult]:
    """
    Deduct stock for every order line inside ONE transaction.

    Any failing line rolls back the whole call: no quantity changes,
    no ledger rows, no alerts. The raised error carries item_index,
    product_id and variant_id of the failing line.

    Lines for products with track_inventory=False are accepted but not
    deducted.
    """
    lines = _normalize_order_lines(items)
    order_number = getattr(order, "order_number", "") or ""
    note = f"Order {order_number}".strip()

    results: list[AdjustmentResult] = []

    with _conflicts_as_domain_errors("deduct_stock_for_order", order_number=order_number):
        with transaction.atomic():
            _apply_lock_timeout()
            units = _lock_units_in_order(store=store, lines=lines)

            for line in lines:
                unit = units[line["key"]]
                if not unit.tracks_inventory:
                    continue

                try:
                    result = _apply_to_unit(
                        unit,
                        quantity=line["quantity"],
                        adjustment_type=AdjustmentType.REMOVE,
                        reason=InventoryReason.ORDER_CREATED,
                        note=note,
                        user=user,
                        order=order,
                    )
                except InventoryServiceError as exc:
                    raise _tag_item_error(
                        exc,
                        index=line["index"],
                        product_id=line["product_id"],
                        variant_id=line["variant_id"],
                    )
                results.append(result)

    logger.info(
        "Stock deducted for order",
        extra={"order_number": order_number, "lines": len(results)},
    )
    _report_alerts(results)
    return results


# ============================================================
# RESTORATION (PER-ITEM TOLERANT)
# ============================================================

def _restore_stock(*, store, items, order, user, reason: str) -> RestorationResult:
    order_number = getattr(order, "order_number", "") or ""
    note = f"Order {order_number}".strip()

    candidates = []
    for idx, item in enumerate(items or []):
        product_id = _item_value(item, "product_id")
        variant_id = _item_value(item, "variant_id")
        try:
            qty = normalize_quantity(_item_value(item, "quantity"))
        except InvalidInputError as exc:
            raise _tag_item_error(exc, index=idx, product_id=product_id, variant_id=variant_id)

        candidates.append(
            {
                "index": idx,
                "product_id": product_id,
                "variant_id": variant_id,
                "variant_line": bool(_item_value(item, "is_variant_line", False)),
                "quantity": qty,
                "key": _unit_key(product_id, variant_id),
            }
        )

    restored: list[AdjustmentResult] = []
    skipped: list[dict] = []

    def _skip(line, why):
        logger.warning(
            "Skipping stock restoration for missing stock unit",
            extra={
                "order_number": order_number,
                "item_index": line["index"],
                "product_id": str(line["product_id"]) if line["product_id"] else None,
                "variant_id": str(line["variant_id"]) if line["variant_id"] else None,
                "quantity": line["quantity"],
                "reason": why,
            },
        )
        skipped.append(
            {
                "index": line["index"],
                "product_id": line["product_id"],
                "variant_id": line["variant_id"],
                "quantity": line["quantity"],
                "reason": why,
            }
        )

    with _conflicts_as_domain_errors(f"restore_stock:{reason}", order_number=order_number):
        with transaction.atomic():
            _apply_lock_timeout()

            live = [c for c in candidates if c["variant_id"] or not c["variant_line"]]

            units = {}
            for key in sorted({c["key"] for c in live}):
                line = next(c for c in live if c["key"] == key)
                if not line["product_id"]:
                    continue
                try:
                    units[key] = resolve_stock_unit(
                        store=store,
                        product_id=line["product_id"],
                        variant_id=line["variant_id"],
                        lock=True,
                    )
                except StockUnitNotFoundError:
                    continue

            for line in candidates:
                if line["variant_line"] and not line["variant_id"]:
                    # Stock lived on the deleted variant, not the parent.
                    _skip(line, "variant no longer exists")
                    continue

                unit = units.get(line["key"])
                if unit is None:
                    _skip(line, "product or variant no longer exists")
                    continue
                if not unit.tracks_inventory or line["quantity"] == 0:
                    continue

                restored.append(
                    _apply_to_unit(
                        unit,
                        quantity=line["quantity"],
                        adjustment_type=AdjustmentType.ADD,
                        reason=reason,
                        note=note,
                        user=user,
                        order=order,
                    )
                )

    logger.info(
        "Stock restored for order",
        extra={
            "order_number": order_number,
            "reason": reason,
            "restored": len(restored),
            "skipped": len(skipped),
        },
    )
    return RestorationResult(restored=restored, skipped=skipped)


def restore_stock_for_cancellation(*, store, items, order, user=None) -> RestorationResult:
    return _restore_stock(
        store=store,
        items=items,
        order=order,
        user=user,
        reason=InventoryReason.ORDER_CANCELLED,
    )


def restore_stock_for_return(*, store, items, order, user=None) -> RestorationResult:
    return _restore_stock(
        store=store,
        items=items,
        order=order,
        user=user,
        reason=InventoryReason.RETURN_PROCESSED,
    )


# ============================================================
# BULK ADJUSTMENT (INDEPENDENT PER-ITEM OUTCOMES)
# ============================================================

def _bulk_limits() -> tuple[int, int]:
    max_items = int(getattr(settings, "INVENTORY_BULK_MAX_ITEMS", 1000) or 1000)
    chunk_size = int(getattr(settings, "INVENTORY_BULK_CHUNK_SIZE", 50) or 50)
    return max_items, max(chunk_size, 1)


def _clean_sku(value) -> str:
    return str(value or "").strip()


def bulk_adjust(*, store, items, user=None) -> BulkAdjustmentResult:
    """
    Apply up to INVENTORY_BULK_MAX_ITEMS adjustments.

    Each item:
      {product_id | sku | variant_sku, variant_id?, quantity, type, reason?, note?}

    Every item runs in its own transaction (adjust_stock); a failure is
    recorded and the batch continues. Errors are reported in input order.
    Chunks only drive progress logging.
    """
    max_items, chunk_size = _bulk_limits()

    if not isinstance(items, (list, tuple)) or not items:
        raise InvalidInputError("items must be a non-empty list")

    if len(items) > max_items:
        raise InvalidInputError(
            f"Maximum {max_items} items per bulk adjustment",
            details={"max_items": max_items, "received": len(items)},
        )

    skus = []
    for item in items:
        if isinstance(item, dict) and not item.get("product_id"):
            skus.append(_clean_sku(item.get("variant_sku") or item.get("sku")))
    sku_map = resolve_skus(store=store, skus=skus)

    result = BulkAdjustmentResult(total=len(items))

    for chunk_start in range(0, len(items), chunk_size):
        chunk = items[chunk_start:chunk_start + chunk_size]
        logger.debug(
            "Processing bulk adjustment chunk",
            extra={"offset": chunk_start, "size": len(chunk), "total": len(items)},
        )

        for offset, item in enumerate(chunk):
            index = chunk_start + offset
            sku = ""
            product_id = None

            try:
                if not isinstance(item, dict):
                    raise InvalidInputError("Invalid item")

                product_id = item.get("product_id")
                variant_id = item.get("variant_id")
                sku = _clean_sku(item.get("variant_sku") or item.get("sku"))

                if not product_id:
                    if not sku:
                        raise InvalidInputError("product_id or sku is required")
                    if sku not in sku_map:
                        raise StockUnitNotFoundError(f"SKU not found: {sku}")
                    product_id, resolved_variant_id = sku_map[sku]
                    variant_id = variant_id or resolved_variant_id

                adjust_stock(
                    store=store,
                    product_id=product_id,
                    variant_id=variant_id,
                    quantity=item.get("quantity"),
                    adjustment_type=item.get("type") or item.get("adjustment_type"),
                    reason=item.get("reason") or InventoryReason.MANUAL_ADJUSTMENT,
                    note=item.get("note") or "",
                    user=user,
                )
                result.succeeded += 1

            except InventoryServiceError as exc:
                result.failed += 1
                result.errors.append(
                    {
                        "index": index,
                        "sku": sku or None,
                        "product_id": str(product_id) if product_id else None,
                        "error": str(exc),
                    }
                )

            except DatabaseError as exc:
                logger.exception(
                    "Bulk adjustment item failed at the database",
                    extra={"index": index, "sku": sku or None},
                )
                result.failed += 1
                result.errors.append(
                    {
                        "index": index,
                        "sku": sku or None,
                        "product_id": str(product_id) if product_id else None,
                        "error": f"Database error: {exc.__class__.__name__}",
                    }
                )

    log = logger.warning if result.has_failures else logger.info
    log(
        "Bulk adjustment finished",
        extra={"total": result.total, "succeeded": result.succeeded, "failed": result.failed},
    )
    return result


# ============================================================
# EXTERNAL MARKETPLACE SYNC
# ============================================================

def _external_quantity(value) -> int:
    if isinstance(value, bool) or value is None or value == "":
        raise InvalidInputError("quantity must be a whole integer unit")
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidInputError("quantity must be a whole integer unit")
    return qty


def update_inventory_from_external(
    *,
    store,
    product_id,
    variant_id=None,
    quantity,
    source: str = "",
    user=None,
) -> AdjustmentResult:
    """
    Absolute stock level pushed by an external marketplace.
    Negative external quantities are clamped to 0.
    """
    qty = _external_quantity(quantity)
    if qty < 0:
        logger.info(
            "Clamping negative external quantity to zero",
            extra={"product_id": str(product_id), "quantity": qty, "source": source},
        )
        qty = 0

    source = (source or "").strip() or "external source"

    return adjust_stock(
        store=store,
        product_id=product_id,
        variant_id=variant_id,
        quantity=qty,
        adjustment_type=AdjustmentType.SET,
        reason=InventoryReason.EXTERNAL_SYNC,
        note=f"Synced from {source}",
        user=user,
    )
