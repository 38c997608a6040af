# inventory/models/audit_log.py

"""
AUDIT LOG (ALERT STREAM)

Append-only record of notable inventory events, kept separate from the
InventoryLog ledger.

Currently written for:
- low_stock_alert: a stock unit crossed from IN_STOCK into LOW_STOCK
  or OUT_OF_STOCK

Rows are never updated or deleted.
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models


class AuditLog(models.Model):
    class Action(models.TextChoices):
        LOW_STOCK_ALERT = "low_stock_alert", "Low Stock Alert"

    class EntityType(models.TextChoices):
        PRODUCT = "Product", "Product"
        PRODUCT_VARIANT = "ProductVariant", "Product Variant"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        "store.Store",
        on_delete=models.CASCADE,
        related_name="audit_logs",
    )

    action = models.CharField(max_length=32, choices=Action.choices, db_index=True)
    entity_type = models.CharField(max_length=32, choices=EntityType.choices)
    entity_id = models.UUIDField(db_index=True)

    changes = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "action", "created_at"], name="audit_store_action_idx"),
            models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("AuditLog records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("AuditLog records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.action} | {self.entity_type}:{self.entity_id}"
