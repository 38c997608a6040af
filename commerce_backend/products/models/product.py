# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from store.models import Store

from .category import Category
from .inventory_status import InventoryStatus, derive_inventory_status


class ProductQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def for_store(self, store):
        return self.filter(store_id=getattr(store, "id", store))

    def tracked(self):
        return self.alive().filter(track_inventory=True)


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - A product without variants IS its own stock unit
      (inventory_qty / low_stock_threshold are authoritative).
    - A product with variants delegates stock to each variant; its own
      inventory_qty is informational only.
    - inventory_qty is mutated ONLY via inventory services (ledger-backed).
    - inventory_status is ALWAYS derived (never user-controlled).

    Soft delete:
    - deleted_at set => product is invisible to inventory operations.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="products",
    )

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    sku = models.CharField(max_length=128, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    track_inventory = models.BooleanField(default=True)

    inventory_qty = models.PositiveIntegerField(
        default=0,
        help_text="On-hand quantity (service-managed only)",
    )

    low_stock_threshold = models.PositiveIntegerField(default=10)

    # Derived field: NEVER edited directly
    inventory_status = models.CharField(
        max_length=16,
        choices=InventoryStatus.choices,
        default=InventoryStatus.OUT_OF_STOCK,
        db_index=True,
    )

    is_active = models.BooleanField(default=True)

    deleted_at = models.DateTimeField(null=True, blank=True, default=None)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "sku"], name="prod_store_sku_idx"),
            models.Index(fields=["store", "inventory_status"], name="prod_store_status_idx"),
            models.Index(fields=["name"], name="prod_name_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "sku"],
                name="unique_product_sku_per_store",
            ),
            models.CheckConstraint(
                condition=Q(inventory_qty__gte=0),
                name="chk_product_inventory_qty_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.price is not None and Decimal(self.price) < Decimal("0.00"):
            raise ValidationError({"price": "price cannot be negative"})

        if self.inventory_qty is None or int(self.inventory_qty) < 0:
            raise ValidationError({"inventory_qty": "inventory_qty cannot be negative"})

        if self.low_stock_threshold is None:
            raise ValidationError({"low_stock_threshold": "low_stock_threshold is required"})

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

    def soft_delete(self):
        self.deleted_at = timezone.now()
        self.is_active = False
        self.save(update_fields=["deleted_at", "is_active"])

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def has_variants(self) -> bool:
        return self.variants.exists()

    @property
    def is_low_stock(self) -> bool:
        return self.inventory_status in (
            InventoryStatus.LOW_STOCK,
            InventoryStatus.OUT_OF_STOCK,
        )
