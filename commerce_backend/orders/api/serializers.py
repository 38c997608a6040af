# orders/api/serializers.py

from rest_framework import serializers

from inventory.services.engine import MAX_STOCK_QTY
from orders.models import Order, OrderItem


# ============================================================
# READ
# ============================================================

class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "variant",
            "product_name",
            "variant_name",
            "is_variant_line",
            "sku",
            "quantity",
            "price",
            "subtotal",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "store",
            "order_number",
            "status",
            "payment_status",
            "payment_method",
            "customer_email",
            "customer_name",
            "customer_phone",
            "shipping_address",
            "billing_address",
            "shipping_method",
            "subtotal",
            "shipping_amount",
            "tax_amount",
            "total_amount",
            "tracking_number",
            "delivered_at",
            "refunded_amount",
            "refund_reason",
            "notes",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# ============================================================
# COMMANDS
# ============================================================

class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_STOCK_QTY)
    price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=0,
        required=False,
        allow_null=True,
        help_text="Unit price; defaults to the catalogue price.",
    )


class OrderCreateCommandSerializer(serializers.Serializer):
    """
    Order creation input.
    Totals are computed server-side; clients never send them.
    """

    store_id = serializers.UUIDField()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    payment_method = serializers.CharField(required=False, allow_blank=True, default="")
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    customer_name = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    customer_phone = serializers.CharField(required=False, allow_blank=True, default="", max_length=32)
    shipping_address = serializers.CharField(required=False, allow_blank=True, default="")
    billing_address = serializers.CharField(required=False, allow_blank=True, default="")
    shipping_method = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)
    shipping_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderStatusCommandSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    tracking_number = serializers.CharField(required=False, allow_blank=True, max_length=128)


class OrderRefundCommandSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
