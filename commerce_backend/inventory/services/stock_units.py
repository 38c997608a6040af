# inventory/services/stock_units.py

"""
STOCK UNIT RESOLVER

A stock unit is either:
- a product without variants (product row is authoritative), or
- one variant of a product (variant row is authoritative; the parent
  product's inventory_qty is never touched)

This module is the only place that branches on "is this a variant".
Everything downstream (engine, ledger, alerts) works on StockUnit.

Tenant isolation:
- a unit resolves only when its product belongs to the given store and
  is not soft-deleted
- "does not exist" and "belongs to another store" raise the SAME error
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from products.models import Product, ProductVariant

from .exceptions import StockUnitNotFoundError


NOT_FOUND_MESSAGE = "Product or variant not found"


@dataclass
class StockUnit:
    product: Product
    variant: ProductVariant | None = None

    @property
    def row(self):
        return self.variant if self.variant is not None else self.product

    @property
    def key(self) -> tuple[str, str]:
        return (str(self.product.id), str(self.variant.id) if self.variant else "")

    @property
    def product_id(self):
        return self.product.id

    @property
    def variant_id(self):
        return self.variant.id if self.variant is not None else None

    @property
    def quantity(self) -> int:
        return int(self.row.inventory_qty or 0)

    @property
    def low_stock_threshold(self) -> int:
        return int(self.row.low_stock_threshold or 0)

    @property
    def status(self) -> str:
        return self.row.inventory_status

    @property
    def sku(self) -> str:
        return self.row.sku

    @property
    def name(self) -> str:
        if self.variant is not None:
            return f"{self.product.name} - {self.variant.name}"
        return self.product.name

    @property
    def entity_type(self) -> str:
        return "ProductVariant" if self.variant is not None else "Product"

    @property
    def tracks_inventory(self) -> bool:
        return bool(self.product.track_inventory)

    def apply_quantity(self, new_qty: int) -> None:
        """
        Persist a new quantity on the authoritative row.
        Model save() re-derives inventory_status.
        """
        row = self.row
        row.inventory_qty = int(new_qty)
        row.save(update_fields=["inventory_qty"])


def _as_uuid(value):
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _store_id(store):
    return getattr(store, "id", store)


def resolve_stock_unit(*, store, product_id, variant_id=None, lock: bool = True) -> StockUnit:
    """
    Resolve (and by default row-lock) the authoritative stock unit.

    lock=True issues SELECT ... FOR UPDATE on the authoritative row only,
    so the caller MUST be inside transaction.atomic().
    """
    store_id = _store_id(store)
    pid = _as_uuid(product_id)
    if store_id is None or pid is None:
        raise StockUnitNotFoundError(NOT_FOUND_MESSAGE)

    if variant_id not in (None, ""):
        vid = _as_uuid(variant_id)
        if vid is None:
            raise StockUnitNotFoundError(NOT_FOUND_MESSAGE)

        qs = ProductVariant.objects.select_related("product").filter(
            id=vid,
            product_id=pid,
            product__store_id=store_id,
            product__deleted_at__isnull=True,
        )
        if lock:
            qs = qs.select_for_update(of=("self",))

        try:
            variant = qs.get()
        except ProductVariant.DoesNotExist:
            raise StockUnitNotFoundError(NOT_FOUND_MESSAGE)

        return StockUnit(product=variant.product, variant=variant)

    qs = Product.objects.alive().filter(id=pid, store_id=store_id)
    if lock:
        qs = qs.select_for_update()

    try:
        product = qs.get()
    except Product.DoesNotExist:
        raise StockUnitNotFoundError(NOT_FOUND_MESSAGE)

    return StockUnit(product=product)


def resolve_skus(*, store, skus) -> dict[str, tuple]:
    """
    Batch SKU lookup: one query for products, one for variants.

    Returns {sku: (product_id, variant_id | None)} for SKUs that resolve
    inside the store. Product SKUs win over variant SKUs on collision.
    """
    wanted = {str(s).strip() for s in skus if s not in (None, "") and str(s).strip()}
    if not wanted:
        return {}

    store_id = _store_id(store)
    resolved: dict[str, tuple] = {}

    variant_rows = ProductVariant.objects.filter(
        sku__in=wanted,
        product__store_id=store_id,
        product__deleted_at__isnull=True,
    ).values_list("sku", "product_id", "id")
    for sku, pid, vid in variant_rows:
        resolved[sku] = (pid, vid)

    product_rows = Product.objects.alive().filter(
        store_id=store_id,
        sku__in=wanted,
    ).values_list("sku", "id")
    for sku, pid in product_rows:
        resolved[sku] = (pid, None)

    return resolved
