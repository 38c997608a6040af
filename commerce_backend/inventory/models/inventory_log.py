# inventory/models/inventory_log.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry: one row per successful stock adjustment.

GUARANTEES:
- Append-only (no updates, no deletes)
- change_qty == new_qty - previous_qty (model + DB constraint)
- Written in the SAME transaction as the stock-unit update
- Never written for a rejected adjustment

Per stock unit, rows ordered by (created_at, seq) form a chain:
each previous_qty equals the prior row's new_qty.

Product/variant FKs are SET_NULL so history survives catalogue deletion;
sku + product_name are snapshotted at write time.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from products.models import ProductVariant

from .reasons import InventoryReason, reason_label


class InventoryLog(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Monotonic insertion order (tie-breaker for rows sharing created_at).
    seq = models.BigIntegerField(editable=False, db_index=True, default=0)

    store = models.ForeignKey(
        "store.Store",
        on_delete=models.CASCADE,
        related_name="inventory_logs",
    )

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
    )

    variant = models.ForeignKey(
        "products.ProductVariant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
    )

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
    )

    sku = models.CharField(max_length=128, blank=True, default="")
    product_name = models.CharField(max_length=255, blank=True, default="")

    previous_qty = models.PositiveIntegerField()
    new_qty = models.PositiveIntegerField()
    change_qty = models.IntegerField()

    reason = models.CharField(max_length=32, choices=InventoryReason.choices)
    note = models.TextField(blank=True, default="")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "seq"]
        indexes = [
            models.Index(fields=["store", "created_at"], name="invlog_store_created_idx"),
            models.Index(fields=["product", "created_at"], name="invlog_product_created_idx"),
            models.Index(fields=["variant", "created_at"], name="invlog_variant_created_idx"),
            models.Index(fields=["order", "created_at"], name="invlog_order_created_idx"),
            models.Index(fields=["reason"], name="invlog_reason_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(change_qty=F("new_qty") - F("previous_qty")),
                name="chk_inventorylog_change_matches_delta",
            ),
        ]

    def clean(self):
        if self.previous_qty is None or self.new_qty is None:
            raise ValidationError("previous_qty and new_qty are required")

        if int(self.previous_qty) < 0 or int(self.new_qty) < 0:
            raise ValidationError("quantities in the ledger cannot be negative")

        if self.change_qty != int(self.new_qty) - int(self.previous_qty):
            raise ValidationError("change_qty must equal new_qty - previous_qty")

        if self.reason not in InventoryReason.values:
            raise ValidationError(f"Unknown inventory reason: {self.reason}")

        if self.variant_id and self.product_id:
            variant_product_id = (
                ProductVariant.objects.filter(id=self.variant_id)
                .values_list("product_id", flat=True)
                .first()
            )
            if variant_product_id and variant_product_id != self.product_id:
                raise ValidationError("Variant does not belong to product")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("InventoryLog records are immutable")

        if not self.seq:
            last = (
                InventoryLog.objects.order_by("-seq")
                .values_list("seq", flat=True)
                .first()
            )
            self.seq = int(last or 0) + 1

        self.clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("InventoryLog records are immutable and cannot be deleted")

    @property
    def reason_label(self) -> str:
        return reason_label(self.reason)

    def __str__(self):
        return f"{self.sku or self.product_name} | {self.reason} | {self.previous_qty} -> {self.new_qty}"
