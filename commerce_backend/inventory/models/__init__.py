from .reasons import InventoryReason, reason_label
from .inventory_log import InventoryLog
from .audit_log import AuditLog

__all__ = [
    "InventoryReason",
    "reason_label",
    "InventoryLog",
    "AuditLog",
]
