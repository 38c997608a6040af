"""
======================================================
PATH: store/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Store (TENANT)
"""

from __future__ import annotations

import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Store",
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
                (
                    "code",
                    models.CharField(
                        max_length=50,
                        null=True,
                        blank=True,
                        db_index=True,
                        help_text="Unique store code / slug (optional). If set, must be unique.",
                    ),
                ),
                ("currency", models.CharField(max_length=3, default="USD")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("code",),
                        condition=models.Q(("code__isnull", False), models.Q(("code", ""), _negated=True)),
                        name="uniq_store_code_when_present",
                    ),
                ],
            },
        ),
    ]
