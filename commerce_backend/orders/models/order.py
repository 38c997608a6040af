# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

User = settings.AUTH_USER_MODEL


class Order(models.Model):
    """
    Customer order placed against a store.

    GUARANTEES:
    - An order exists only if its stock deduction succeeded
      (created in the same transaction as deduct_stock_for_order)
    - order_number is unique per store: ORD-YYYYMMDD-NNNN
    - idempotency_key (when present) is unique per store; replays return
      the original order
    - Status changes go through orders.services (lifecycle-validated)
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PROCESSING = "PROCESSING", "Processing"
        SHIPPED = "SHIPPED", "Shipped"
        DELIVERED = "DELIVERED", "Delivered"
        CANCELED = "CANCELED", "Canceled"
        REFUNDED = "REFUNDED", "Refunded"

    class PaymentStatus(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PAID = "PAID", "Paid"
        REFUNDED = "REFUNDED", "Refunded"

    class PaymentMethod(models.TextChoices):
        CREDIT_CARD = "CREDIT_CARD", "Credit Card"
        MOBILE_BANKING = "MOBILE_BANKING", "Mobile Banking"
        CASH_ON_DELIVERY = "CASH_ON_DELIVERY", "Cash on Delivery"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="orders",
    )

    order_number = models.CharField(max_length=32, db_index=True)

    customer_email = models.EmailField(blank=True, default="")
    customer_name = models.CharField(max_length=255, blank=True, default="")
    customer_phone = models.CharField(max_length=32, blank=True, default="")

    shipping_address = models.TextField(blank=True, default="")
    billing_address = models.TextField(blank=True, default="")
    shipping_method = models.CharField(max_length=64, blank=True, default="")

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    payment_method = models.CharField(
        max_length=32,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH_ON_DELIVERY,
    )
    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    idempotency_key = models.CharField(max_length=255, null=True, blank=True)

    tracking_number = models.CharField(max_length=128, blank=True, default="")
    delivered_at = models.DateTimeField(null=True, blank=True)

    refunded_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    refund_reason = models.TextField(blank=True, default="")

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "status"], name="order_store_status_idx"),
            models.Index(fields=["store", "created_at"], name="order_store_created_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "order_number"],
                name="unique_order_number_per_store",
            ),
            models.UniqueConstraint(
                fields=["store", "idempotency_key"],
                condition=Q(idempotency_key__isnull=False),
                name="unique_order_idempotency_key_per_store",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="chk_order_total_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"
