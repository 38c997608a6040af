# inventory/api/serializers.py

from rest_framework import serializers

from inventory.models import AuditLog, InventoryLog, InventoryReason
from inventory.services.engine import MAX_STOCK_QTY, AdjustmentType
from products.models import Product


# ============================================================
# COMMAND SERIALIZERS (WRITE)
# ============================================================

class StockAdjustmentCommandSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=0, max_value=MAX_STOCK_QTY)
    type = serializers.ChoiceField(choices=AdjustmentType.choices)
    reason = serializers.ChoiceField(choices=InventoryReason.choices)
    note = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")


class BulkAdjustmentCommandSerializer(serializers.Serializer):
    """
    Shape-only validation. Per-item validation happens in bulk_adjust so a
    bad item is reported in `errors` instead of rejecting the whole batch.
    """

    store_id = serializers.UUIDField()
    items = serializers.ListField(child=serializers.DictField(), allow_empty=True)


class BulkCsvUploadSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    file = serializers.FileField()


class ExternalSyncCommandSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(max_value=MAX_STOCK_QTY)
    source = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")


# ============================================================
# READ SERIALIZERS
# ============================================================

class StockUnitSnapshotSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(allow_null=True)
    sku = serializers.CharField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    low_stock_threshold = serializers.IntegerField()
    status = serializers.CharField()


class InventoryLevelSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "inventory_qty",
            "low_stock_threshold",
            "inventory_status",
            "category_name",
            "updated_at",
        ]
        read_only_fields = fields


class InventoryLogSerializer(serializers.ModelSerializer):
    reason_label = serializers.CharField(read_only=True)
    variant_name = serializers.CharField(source="variant.name", read_only=True, default=None)
    order_number = serializers.CharField(source="order.order_number", read_only=True, default=None)
    user_name = serializers.CharField(source="user.username", read_only=True, default=None)

    class Meta:
        model = InventoryLog
        fields = [
            "id",
            "product",
            "variant",
            "variant_name",
            "order",
            "order_number",
            "sku",
            "product_name",
            "previous_qty",
            "new_qty",
            "change_qty",
            "reason",
            "reason_label",
            "note",
            "user",
            "user_name",
            "created_at",
        ]
        read_only_fields = fields


class LowStockAlertSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = ["id", "action", "entity_type", "entity_id", "changes", "created_at"]
        read_only_fields = fields
