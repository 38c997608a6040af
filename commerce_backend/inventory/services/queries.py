# inventory/services/queries.py

"""
Inventory read side.

Plain (non-locking) reads scoped by store. These never block on the
row locks held by in-flight adjustments.
"""

from __future__ import annotations

from django.db.models import Case, IntegerField, Prefetch, Q, Value, When

from inventory.models import AuditLog, InventoryLog
from products.models import InventoryStatus, Product, ProductVariant
from products.models.inventory_status import LOW_STATUSES


def _store_id(store):
    return getattr(store, "id", store)


def _status_rank():
    return Case(
        When(inventory_status=InventoryStatus.LOW_STOCK, then=Value(0)),
        When(inventory_status=InventoryStatus.OUT_OF_STOCK, then=Value(1)),
        default=Value(2),
        output_field=IntegerField(),
    )


def get_inventory_levels(*, store, search=None, category_id=None, low_stock_only: bool = False):
    """
    Tracked, non-deleted products; low/out first, then lowest quantity.
    """
    qs = (
        Product.objects.tracked()
        .for_store(store)
        .select_related("category")
        .annotate(status_rank=_status_rank())
    )

    search = (search or "").strip()
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(sku__icontains=search))

    if category_id:
        qs = qs.filter(category_id=category_id)

    if low_stock_only:
        qs = qs.filter(inventory_status__in=LOW_STATUSES)

    return qs.order_by("status_rank", "inventory_qty", "name")


def _deficit(row) -> int:
    return max(0, int(row.low_stock_threshold or 0) - int(row.inventory_qty or 0))


def get_low_stock_items(*, store, threshold=None) -> list[dict]:
    """
    Products whose own status is low/out, plus products that have at least
    one low/out variant (those variants are listed under the product).

    threshold: when given, a variant is low if inventory_qty <= threshold
    instead of by its own derived status.
    """
    if threshold is None:
        variant_low = Q(inventory_status__in=LOW_STATUSES)
        product_has_low_variant = Q(variants__inventory_status__in=LOW_STATUSES)
    else:
        variant_low = Q(inventory_qty__lte=int(threshold))
        product_has_low_variant = Q(variants__inventory_qty__lte=int(threshold))

    low_variants = ProductVariant.objects.filter(variant_low).order_by("inventory_qty", "name")

    qs = (
        Product.objects.tracked()
        .for_store(store)
        .filter(
            Q(inventory_status__in=LOW_STATUSES) | product_has_low_variant
        )
        .distinct()
        .select_related("category")
        .prefetch_related(Prefetch("variants", queryset=low_variants, to_attr="low_variants"))
        .annotate(status_rank=_status_rank())
        .order_by("status_rank", "inventory_qty", "name")
    )

    items = []
    for product in qs:
        items.append(
            {
                "id": str(product.id),
                "name": product.name,
                "sku": product.sku,
                "inventory_qty": product.inventory_qty,
                "low_stock_threshold": product.low_stock_threshold,
                "inventory_status": product.inventory_status,
                "category_name": product.category.name if product.category else None,
                "deficit": _deficit(product),
                "variants": [
                    {
                        "id": str(v.id),
                        "name": v.name,
                        "sku": v.sku,
                        "inventory_qty": v.inventory_qty,
                        "low_stock_threshold": v.low_stock_threshold,
                        "inventory_status": v.inventory_status,
                        "deficit": _deficit(v),
                    }
                    for v in product.low_variants
                ],
            }
        )
    return items


def get_low_stock_count(*, store) -> dict:
    qs = Product.objects.tracked().for_store(store)
    return {
        "low_stock": qs.filter(inventory_status=InventoryStatus.LOW_STOCK).count(),
        "out_of_stock": qs.filter(inventory_status=InventoryStatus.OUT_OF_STOCK).count(),
    }


def get_inventory_history(*, store, product_id, reason=None):
    qs = (
        InventoryLog.objects.filter(store_id=_store_id(store), product_id=product_id)
        .select_related("variant", "user", "order")
        .order_by("-created_at", "-seq")
    )
    if reason:
        qs = qs.filter(reason=reason)
    return qs


def get_low_stock_alerts(*, store):
    return AuditLog.objects.filter(
        store_id=_store_id(store),
        action=AuditLog.Action.LOW_STOCK_ALERT,
    ).order_by("-created_at")
