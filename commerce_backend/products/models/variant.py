# products/models/variant.py

"""
PRODUCT VARIANT (VARIANT-LEVEL STOCK UNIT)

When a product has variants, each variant is its own stock unit:
- inventory_qty / low_stock_threshold on the variant are authoritative
- the parent product's quantity is not touched by variant adjustments
- inventory_status is derived on every save
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .inventory_status import InventoryStatus, derive_inventory_status
from .product import Product


class ProductVariant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255)

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Overrides product price when set.",
    )

    inventory_qty = models.PositiveIntegerField(
        default=0,
        help_text="On-hand quantity (service-managed only)",
    )

    low_stock_threshold = models.PositiveIntegerField(default=5)

    inventory_status = models.CharField(
        max_length=16,
        choices=InventoryStatus.choices,
        default=InventoryStatus.OUT_OF_STOCK,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["product", "name"]
        indexes = [
            models.Index(fields=["product", "inventory_qty"], name="variant_product_qty_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(inventory_qty__gte=0),
                name="chk_variant_inventory_qty_gte_zero",
            ),
        ]

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} - {self.name} ({self.sku})"

    def clean(self):
        if self.price is not None and Decimal(self.price) < Decimal("0.00"):
            raise ValidationError({"price": "price cannot be negative"})

        if self.inventory_qty is None or int(self.inventory_qty) < 0:
            raise ValidationError({"inventory_qty": "inventory_qty cannot be negative"})

    def save(self, *args, **kwargs):
        self.inventory_status = derive_inventory_status(
            self.inventory_qty, self.low_stock_threshold
        )

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            fields = set(update_fields)
            if fields & {"inventory_qty", "low_stock_threshold"}:
                fields.add("inventory_status")
            fields.add("updated_at")
            kwargs["update_fields"] = sorted(fields)

        self.clean()
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        return f"{self.product.name} - {self.name}"
