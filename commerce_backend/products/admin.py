# products/admin.py
"""
Admin rules (ledger-safe stock):

- Products and variants are created/edited here as catalogue data.
- inventory_qty and inventory_status are READ-ONLY in admin.
  Stock changes must go through inventory services so every change
  produces an InventoryLog row.
"""

from django.contrib import admin

from products.models import Category, Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("sku", "name", "price", "low_stock_threshold", "inventory_qty", "inventory_status")
    readonly_fields = ("inventory_qty", "inventory_status")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "sku",
        "store",
        "inventory_qty",
        "low_stock_threshold",
        "inventory_status",
        "is_active",
        "deleted_at",
    )
    list_filter = ("store", "inventory_status", "track_inventory", "is_active")
    search_fields = ("name", "sku")
    readonly_fields = ("inventory_qty", "inventory_status", "created_at", "updated_at")
    inlines = [ProductVariantInline]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "store", "created_at")
    list_filter = ("store",)
    search_fields = ("name",)
