# store/models/store.py

"""
STORE (TENANT)

Every inventory row belongs to exactly one Store.

Guarantees:
- Stores are stable master-data (never hard-deleted while products exist)
- code is optional, but if provided it must be unique
- All inventory reads/writes are scoped by store (tenant isolation)
"""

import uuid

from django.db import models
from django.db.models import Q


class Store(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)

    code = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="Unique store code / slug (optional). If set, must be unique.",
        db_index=True,
    )

    currency = models.CharField(max_length=3, default="USD")

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(code__isnull=False) & ~Q(code=""),
                name="uniq_store_code_when_present",
            ),
        ]

    def __str__(self):
        c = (self.code or "").strip()
        if c:
            return f"{self.name} ({c})"
        return self.name
