# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from .order import Order


class OrderItem(models.Model):
    """
    One order line.

    Product/variant are SET_NULL so the line survives catalogue deletion;
    name/sku/price are snapshotted at order time. Stock restoration skips
    lines whose product (or, for variant lines, variant) is gone.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )

    variant = models.ForeignKey(
        "products.ProductVariant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )

    product_name = models.CharField(max_length=255)
    variant_name = models.CharField(max_length=255, blank=True, default="")

    # True when the line was sold from a variant; survives the variant FK being nulled.
    is_variant_line = models.BooleanField(default=False)
    sku = models.CharField(max_length=128, blank=True, default="")

    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="chk_orderitem_quantity_gte_one",
            ),
        ]

    def save(self, *args, **kwargs):
        self.subtotal = (Decimal(self.price or 0) * int(self.quantity or 0)).quantize(Decimal("0.01"))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"
