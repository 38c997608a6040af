# inventory/admin.py
"""
Ledger admin is READ-ONLY.
InventoryLog / AuditLog rows are written only by inventory services.
"""

from django.contrib import admin

from inventory.models import AuditLog, InventoryLog


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(InventoryLog)
class InventoryLogAdmin(ReadOnlyAdmin):
    list_display = (
        "created_at",
        "store",
        "sku",
        "product_name",
        "reason",
        "previous_qty",
        "new_qty",
        "change_qty",
        "order",
        "user",
    )
    list_filter = ("store", "reason")
    search_fields = ("sku", "product_name", "note")
    ordering = ("-created_at", "-seq")


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = ("created_at", "store", "action", "entity_type", "entity_id")
    list_filter = ("store", "action", "entity_type")
