"""
======================================================
PATH: products/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Category, Product, ProductVariant

Purpose:
- Stock units (product-level and variant-level)
- Per-store SKU uniqueness for products
- DB-level CHECK inventory_qty >= 0 on both stock units
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


STATUS_CHOICES = [
    ("IN_STOCK", "In Stock"),
    ("LOW_STOCK", "Low Stock"),
    ("OUT_OF_STOCK", "Out of Stock"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("store", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
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
                ("name", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="categories",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "categories",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("store", "name"),
                        name="unique_category_name_per_store",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Product",
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
                ("sku", models.CharField(max_length=128, db_index=True)),
                ("name", models.CharField(max_length=255, db_index=True)),
                (
                    "price",
                    models.DecimalField(
                        max_digits=10,
                        decimal_places=2,
                        default=Decimal("0.00"),
                    ),
                ),
                ("track_inventory", models.BooleanField(default=True)),
                (
                    "inventory_qty",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="On-hand quantity (service-managed only)",
                    ),
                ),
                ("low_stock_threshold", models.PositiveIntegerField(default=10)),
                (
                    "inventory_status",
                    models.CharField(
                        max_length=16,
                        choices=STATUS_CHOICES,
                        default="OUT_OF_STOCK",
                        db_index=True,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("deleted_at", models.DateTimeField(null=True, blank=True, default=None)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="store.store",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="products.category",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["store", "sku"], name="prod_store_sku_idx"),
                    models.Index(fields=["store", "inventory_status"], name="prod_store_status_idx"),
                    models.Index(fields=["name"], name="prod_name_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("store", "sku"),
                        name="unique_product_sku_per_store",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("inventory_qty__gte", 0)),
                        name="chk_product_inventory_qty_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
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
                ("sku", models.CharField(max_length=128, unique=True, db_index=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "price",
                    models.DecimalField(
                        max_digits=10,
                        decimal_places=2,
                        null=True,
                        blank=True,
                        help_text="Overrides product price when set.",
                    ),
                ),
                (
                    "inventory_qty",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="On-hand quantity (service-managed only)",
                    ),
                ),
                ("low_stock_threshold", models.PositiveIntegerField(default=5)),
                (
                    "inventory_status",
                    models.CharField(
                        max_length=16,
                        choices=STATUS_CHOICES,
                        default="OUT_OF_STOCK",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["product", "name"],
                "indexes": [
                    models.Index(fields=["product", "inventory_qty"], name="variant_product_qty_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("inventory_qty__gte", 0)),
                        name="chk_variant_inventory_qty_gte_zero",
                    ),
                ],
            },
        ),
    ]
