"""
======================================================
PATH: orders/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Order, OrderItem

Purpose:
- order_number unique per store
- idempotency_key unique per store when present (partial unique)
- OrderItem keeps name/sku/price snapshots; catalogue FKs are SET_NULL
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("store", "0001_initial"),
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
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
                ("order_number", models.CharField(max_length=32, db_index=True)),
                ("customer_email", models.EmailField(max_length=254, blank=True, default="")),
                ("customer_name", models.CharField(max_length=255, blank=True, default="")),
                ("customer_phone", models.CharField(max_length=32, blank=True, default="")),
                ("shipping_address", models.TextField(blank=True, default="")),
                ("billing_address", models.TextField(blank=True, default="")),
                ("shipping_method", models.CharField(max_length=64, blank=True, default="")),
                ("subtotal", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("shipping_amount", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("tax_amount", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("total_amount", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                (
                    "payment_method",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("CREDIT_CARD", "Credit Card"),
                            ("MOBILE_BANKING", "Mobile Banking"),
                            ("CASH_ON_DELIVERY", "Cash on Delivery"),
                        ],
                        default="CASH_ON_DELIVERY",
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("PENDING", "Pending"),
                            ("PAID", "Paid"),
                            ("REFUNDED", "Refunded"),
                        ],
                        default="PENDING",
                        db_index=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("PENDING", "Pending"),
                            ("PROCESSING", "Processing"),
                            ("SHIPPED", "Shipped"),
                            ("DELIVERED", "Delivered"),
                            ("CANCELED", "Canceled"),
                            ("REFUNDED", "Refunded"),
                        ],
                        default="PENDING",
                        db_index=True,
                    ),
                ),
                ("idempotency_key", models.CharField(max_length=255, null=True, blank=True)),
                ("tracking_number", models.CharField(max_length=128, blank=True, default="")),
                ("delivered_at", models.DateTimeField(null=True, blank=True)),
                (
                    "refunded_amount",
                    models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True),
                ),
                ("refund_reason", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="store.store",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["store", "status"], name="order_store_status_idx"),
                    models.Index(fields=["store", "created_at"], name="order_store_created_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("store", "order_number"),
                        name="unique_order_number_per_store",
                    ),
                    models.UniqueConstraint(
                        fields=("store", "idempotency_key"),
                        condition=models.Q(("idempotency_key__isnull", False)),
                        name="unique_order_idempotency_key_per_store",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gte", 0)),
                        name="chk_order_total_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
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
                ("product_name", models.CharField(max_length=255)),
                ("variant_name", models.CharField(max_length=255, blank=True, default="")),
                ("is_variant_line", models.BooleanField(default=False)),
                ("sku", models.CharField(max_length=128, blank=True, default="")),
                ("quantity", models.PositiveIntegerField()),
                ("price", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("subtotal", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_items",
                        to="products.product",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_items",
                        to="products.productvariant",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="chk_orderitem_quantity_gte_one",
                    ),
                ],
            },
        ),
    ]
