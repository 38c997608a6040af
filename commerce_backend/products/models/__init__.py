"""
Products models export surface.
"""

from .category import Category
from .inventory_status import InventoryStatus, derive_inventory_status
from .product import Product
from .variant import ProductVariant

__all__ = [
    "Category",
    "InventoryStatus",
    "Product",
    "ProductVariant",
    "derive_inventory_status",
]
