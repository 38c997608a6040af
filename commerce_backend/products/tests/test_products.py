# products/tests/test_products.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from products.models import InventoryStatus, Product, ProductVariant
from store.models import Store


class ProductModelTests(TestCase):
    """
    Catalogue invariants.

    GUARANTEES:
    - inventory_status is always derived from quantity + threshold
    - SKU is unique per store, not globally
    - soft-deleted products stay in the table but leave every query helper
    """

    def setUp(self):
        self.store = Store.objects.create(name="Corner Shop")
        self.product = Product.objects.create(
            store=self.store,
            name="Water Bottle",
            sku="WB-001",
            price=Decimal("50.00"),
            inventory_qty=20,
            low_stock_threshold=5,
        )

    def test_status_is_derived_on_create(self):
        """A stocked product above its threshold is IN_STOCK."""
        self.assertEqual(self.product.inventory_status, InventoryStatus.IN_STOCK)

    def test_status_cannot_be_set_by_caller(self):
        """Whatever the caller writes, save() re-derives the status."""
        self.product.inventory_status = InventoryStatus.OUT_OF_STOCK
        self.product.save()

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_status, InventoryStatus.IN_STOCK)

    def test_update_fields_carry_the_derived_status(self):
        """Partial saves of inventory_qty still persist the new status."""
        self.product.inventory_qty = 3
        self.product.save(update_fields=["inventory_qty"])

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_status, InventoryStatus.LOW_STOCK)

    def test_threshold_change_rederives_status(self):
        self.product.low_stock_threshold = 25
        self.product.save(update_fields=["low_stock_threshold"])

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_status, InventoryStatus.LOW_STOCK)

    def test_sku_unique_within_store(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Product.objects.create(store=self.store, name="Copy", sku="WB-001")

    def test_same_sku_allowed_in_other_store(self):
        other = Store.objects.create(name="Corner Shop Two")
        copy = Product.objects.create(store=other, name="Water Bottle", sku="WB-001")
        self.assertEqual(copy.sku, self.product.sku)

    def test_negative_price_is_rejected(self):
        with self.assertRaises(ValidationError):
            Product.objects.create(store=self.store, name="Bad", sku="BAD-1", price=Decimal("-1.00"))

    def test_soft_delete_hides_product(self):
        self.product.soft_delete()

        self.assertTrue(self.product.is_deleted)
        self.assertFalse(self.product.is_active)
        self.assertFalse(Product.objects.alive().filter(pk=self.product.pk).exists())
        self.assertTrue(Product.objects.filter(pk=self.product.pk).exists())

    def test_tracked_excludes_untracked_products(self):
        Product.objects.create(store=self.store, name="Gift Wrap", sku="WRAP", track_inventory=False)
        skus = set(Product.objects.tracked().for_store(self.store).values_list("sku", flat=True))
        self.assertEqual(skus, {"WB-001"})


class ProductVariantModelTests(TestCase):
    def setUp(self):
        store = Store.objects.create(name="Apparel")
        self.product = Product.objects.create(store=store, name="Hoodie", sku="HOOD")

    def test_variant_status_is_derived(self):
        variant = ProductVariant.objects.create(
            product=self.product,
            sku="HOOD-S",
            name="Small",
            inventory_qty=0,
        )
        self.assertEqual(variant.inventory_status, InventoryStatus.OUT_OF_STOCK)

        variant.inventory_qty = 2
        variant.save(update_fields=["inventory_qty"])
        variant.refresh_from_db()
        self.assertEqual(variant.inventory_status, InventoryStatus.LOW_STOCK)

    def test_product_reports_variants(self):
        self.assertFalse(self.product.has_variants)
        ProductVariant.objects.create(product=self.product, sku="HOOD-L", name="Large")
        self.assertTrue(self.product.has_variants)
        self.assertEqual(
            ProductVariant.objects.get(sku="HOOD-L").display_name,
            "Hoodie - Large",
        )
