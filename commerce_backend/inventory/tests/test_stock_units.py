# inventory/tests/test_stock_units.py

import uuid

from django.test import TestCase

from inventory.services.exceptions import StockUnitNotFoundError
from inventory.services.stock_units import resolve_skus, resolve_stock_unit

from .factories import make_product, make_store, make_variant


class ResolveStockUnitTests(TestCase):
    """
    A unit resolves only inside its own store, and "missing" looks exactly
    like "belongs to another store".
    """

    def setUp(self):
        self.store = make_store("Store A")
        self.other_store = make_store("Store B")

        self.product = make_product(self.store, sku="TEE", name="T-Shirt", qty=10)
        self.variant = make_variant(self.product, sku="TEE-M", name="Medium", qty=4)

        self.foreign = make_product(self.other_store, sku="FOREIGN", qty=3)

    def test_product_without_variant_is_its_own_unit(self):
        unit = resolve_stock_unit(store=self.store, product_id=self.product.id, lock=False)

        self.assertIsNone(unit.variant)
        self.assertEqual(unit.row, self.product)
        self.assertEqual(unit.quantity, 10)
        self.assertEqual(unit.entity_type, "Product")
        self.assertEqual(unit.key, (str(self.product.id), ""))

    def test_variant_is_authoritative_when_given(self):
        unit = resolve_stock_unit(
            store=self.store,
            product_id=self.product.id,
            variant_id=self.variant.id,
            lock=False,
        )

        self.assertEqual(unit.row, self.variant)
        self.assertEqual(unit.quantity, 4)
        self.assertEqual(unit.name, "T-Shirt - Medium")
        self.assertEqual(unit.sku, "TEE-M")
        self.assertEqual(unit.entity_type, "ProductVariant")

    def test_string_ids_are_accepted(self):
        unit = resolve_stock_unit(store=self.store.id, product_id=str(self.product.id), lock=False)
        self.assertEqual(unit.product_id, self.product.id)

    def test_other_store_and_missing_raise_the_same_error(self):
        with self.assertRaises(StockUnitNotFoundError) as foreign:
            resolve_stock_unit(store=self.store, product_id=self.foreign.id, lock=False)

        with self.assertRaises(StockUnitNotFoundError) as missing:
            resolve_stock_unit(store=self.store, product_id=uuid.uuid4(), lock=False)

        self.assertEqual(str(foreign.exception), str(missing.exception))
        self.assertEqual(foreign.exception.code, missing.exception.code)

    def test_malformed_id_is_not_found(self):
        with self.assertRaises(StockUnitNotFoundError):
            resolve_stock_unit(store=self.store, product_id="not-a-uuid", lock=False)

    def test_variant_must_belong_to_product(self):
        other_product = make_product(self.store, sku="MUG")

        with self.assertRaises(StockUnitNotFoundError):
            resolve_stock_unit(
                store=self.store,
                product_id=other_product.id,
                variant_id=self.variant.id,
                lock=False,
            )

    def test_variant_of_foreign_store_is_not_found(self):
        foreign_variant = make_variant(self.foreign, sku="FOREIGN-L")

        with self.assertRaises(StockUnitNotFoundError):
            resolve_stock_unit(
                store=self.store,
                product_id=self.foreign.id,
                variant_id=foreign_variant.id,
                lock=False,
            )

    def test_soft_deleted_product_is_not_found(self):
        self.product.soft_delete()

        with self.assertRaises(StockUnitNotFoundError):
            resolve_stock_unit(store=self.store, product_id=self.product.id, lock=False)

        with self.assertRaises(StockUnitNotFoundError):
            resolve_stock_unit(
                store=self.store,
                product_id=self.product.id,
                variant_id=self.variant.id,
                lock=False,
            )

    def test_locking_resolution_inside_transaction(self):
        from django.db import transaction

        with transaction.atomic():
            unit = resolve_stock_unit(store=self.store, product_id=self.product.id)
        self.assertEqual(unit.quantity, 10)


class ResolveSkusTests(TestCase):
    def setUp(self):
        self.store = make_store("Store A")
        self.other_store = make_store("Store B")

        self.product = make_product(self.store, sku="TEE")
        self.variant = make_variant(self.product, sku="TEE-M")
        make_product(self.other_store, sku="FOREIGN")

    def test_maps_product_and_variant_skus(self):
        resolved = resolve_skus(store=self.store, skus=["TEE", "TEE-M", " TEE "])

        self.assertEqual(resolved["TEE"], (self.product.id, None))
        self.assertEqual(resolved["TEE-M"], (self.product.id, self.variant.id))

    def test_unknown_and_foreign_skus_are_absent(self):
        resolved = resolve_skus(store=self.store, skus=["NOPE", "FOREIGN", "", None])
        self.assertEqual(resolved, {})

    def test_soft_deleted_products_are_excluded(self):
        self.product.soft_delete()
        self.assertEqual(resolve_skus(store=self.store, skus=["TEE", "TEE-M"]), {})
