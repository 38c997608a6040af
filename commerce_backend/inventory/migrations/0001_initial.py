"""
======================================================
PATH: inventory/migrations/0001_initial.py
======================================================
MIGRATION: CREATE InventoryLog (LEDGER), AuditLog (ALERTS)

Purpose:
- Append-only ledger with CHECK change_qty = new_qty - previous_qty
- Separate alert stream for low-stock crossings
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("store", "0001_initial"),
        ("products", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryLog",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("seq", models.BigIntegerField(editable=False, db_index=True, default=0)),
                ("sku", models.CharField(max_length=128, blank=True, default="")),
                ("product_name", models.CharField(max_length=255, blank=True, default="")),
                ("previous_qty", models.PositiveIntegerField()),
                ("new_qty", models.PositiveIntegerField()),
                ("change_qty", models.IntegerField()),
                (
                    "reason",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("order_created", "Order Created"),
                            ("order_cancelled", "Order Cancelled"),
                            ("return_processed", "Return Processed"),
                            ("manual_adjustment", "Manual Adjustment"),
                            ("restock", "Restock"),
                            ("damaged", "Damaged"),
                            ("lost", "Lost"),
                            ("found", "Found"),
                            ("stock_transfer", "Stock Transfer"),
                            ("inventory_count", "Inventory Count"),
                            ("expired", "Expired"),
                            ("theft", "Theft"),
                            ("external_sync", "External Sync"),
                        ],
                    ),
                ),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_logs",
                        to="store.store",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_logs",
                        to="products.product",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_logs",
                        to="products.productvariant",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_logs",
                        to="orders.order",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "seq"],
                "indexes": [
                    models.Index(fields=["store", "created_at"], name="invlog_store_created_idx"),
                    models.Index(fields=["product", "created_at"], name="invlog_product_created_idx"),
                    models.Index(fields=["variant", "created_at"], name="invlog_variant_created_idx"),
                    models.Index(fields=["order", "created_at"], name="invlog_order_created_idx"),
                    models.Index(fields=["reason"], name="invlog_reason_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("change_qty", models.F("new_qty") - models.F("previous_qty"))),
                        name="chk_inventorylog_change_matches_delta",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        max_length=32,
                        choices=[("low_stock_alert", "Low Stock Alert")],
                        db_index=True,
                    ),
                ),
                (
                    "entity_type",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("Product", "Product"),
                            ("ProductVariant", "Product Variant"),
                        ],
                    ),
                ),
                ("entity_id", models.UUIDField(db_index=True)),
                ("changes", models.JSONField(default=dict, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="audit_logs",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["store", "action", "created_at"], name="audit_store_action_idx"),
                    models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
                ],
            },
        ),
    ]
