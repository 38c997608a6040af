# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product", "variant", "product_name", "variant_name", "is_variant_line", "sku", "quantity", "price", "subtotal")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "store",
        "status",
        "payment_status",
        "payment_method",
        "total_amount",
        "created_at",
    )
    list_filter = ("store", "status", "payment_status", "payment_method")
    search_fields = ("order_number", "customer_email", "customer_name")
    readonly_fields = (
        "order_number",
        "status",
        "payment_status",
        "subtotal",
        "total_amount",
        "refunded_amount",
        "idempotency_key",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline]
