# inventory/tests/test_adjust_stock.py

from django.core.exceptions import ValidationError
from django.test import TestCase

from inventory.models import AuditLog, InventoryLog, InventoryReason
from inventory.services import (
    InsufficientStockError,
    InvalidInputError,
    StockUnitNotFoundError,
    adjust_stock,
)
from products.models import InventoryStatus

from .factories import (
    assert_chain_consistent,
    make_product,
    make_store,
    make_user,
    make_variant,
)


class AdjustStockTests(TestCase):
    """
    Single-unit adjustments: quantity, derived status, ledger and alerts
    move together or not at all.
    """

    def setUp(self):
        self.store = make_store()
        self.user = make_user("stock_clerk")
        self.product = make_product(self.store, sku="WIDGET", name="Widget", qty=20, threshold=5)

    def adjust(self, quantity, kind, reason=InventoryReason.MANUAL_ADJUSTMENT, **extra):
        return adjust_stock(
            store=self.store,
            product_id=self.product.id,
            quantity=quantity,
            adjustment_type=kind,
            reason=reason,
            user=self.user,
            **extra,
        )

    def test_remove_within_stock_records_one_ledger_row(self):
        result = self.adjust(3, "REMOVE", InventoryReason.DAMAGED, note="dropped")

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 17)
        self.assertEqual(self.product.inventory_status, InventoryStatus.IN_STOCK)

        self.assertEqual(result.previous_qty, 20)
        self.assertEqual(result.new_qty, 17)
        self.assertIsNone(result.alert)

        log = InventoryLog.objects.get()
        self.assertEqual(log.previous_qty, 20)
        self.assertEqual(log.new_qty, 17)
        self.assertEqual(log.change_qty, -3)
        self.assertEqual(log.reason, InventoryReason.DAMAGED)
        self.assertEqual(log.note, "dropped")
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.store_id, self.store.id)
        self.assertEqual(log.sku, "WIDGET")
        self.assertEqual(log.product_name, "Widget")

    def test_crossing_into_low_stock_raises_exactly_one_alert(self):
        with self.assertLogs("inventory", level="WARNING") as captured:
            result = self.adjust(16, "REMOVE")

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 4)
        self.assertEqual(self.product.inventory_status, InventoryStatus.LOW_STOCK)

        alert = AuditLog.objects.get()
        self.assertEqual(result.alert, alert)
        self.assertEqual(alert.action, AuditLog.Action.LOW_STOCK_ALERT)
        self.assertEqual(alert.entity_type, AuditLog.EntityType.PRODUCT)
        self.assertEqual(alert.entity_id, self.product.id)
        self.assertEqual(alert.changes["previous_status"], InventoryStatus.IN_STOCK)
        self.assertEqual(alert.changes["new_status"], InventoryStatus.LOW_STOCK)
        self.assertEqual(alert.changes["current_stock"], 4)
        self.assertEqual(alert.changes["threshold"], 5)

        self.assertTrue(any("Low stock alert" in line for line in captured.output))

    def test_no_alert_while_already_low(self):
        self.adjust(16, "REMOVE")
        self.adjust(2, "REMOVE")
        self.adjust(2, "REMOVE")

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 0)
        self.assertEqual(self.product.inventory_status, InventoryStatus.OUT_OF_STOCK)
        self.assertEqual(AuditLog.objects.count(), 1)

    def test_recovering_and_crossing_again_alerts_again(self):
        self.adjust(16, "REMOVE")
        self.adjust(20, "ADD")
        self.adjust(20, "REMOVE")

        self.assertEqual(AuditLog.objects.count(), 2)

    def test_insufficient_stock_writes_nothing(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            self.adjust(21, "REMOVE")

        self.assertEqual(ctx.exception.available, 20)
        self.assertEqual(ctx.exception.requested, 21)

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 20)
        self.assertEqual(InventoryLog.objects.count(), 0)
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_set_records_the_signed_difference(self):
        result = self.adjust(50, "SET", InventoryReason.INVENTORY_COUNT)

        self.assertEqual(result.transition.change_qty, 30)
        log = InventoryLog.objects.get()
        self.assertEqual((log.previous_qty, log.new_qty, log.change_qty), (20, 50, 30))

    def test_set_to_zero_from_in_stock_is_a_crossing(self):
        result = self.adjust(0, "SET", InventoryReason.INVENTORY_COUNT)

        self.assertEqual(result.status, InventoryStatus.OUT_OF_STOCK)
        self.assertIsNotNone(result.alert)

    def test_invalid_inputs_are_rejected_before_any_write(self):
        cases = [
            dict(quantity=-1, kind="ADD"),
            dict(quantity="1.5", kind="ADD"),
            dict(quantity=1, kind="TRANSFER"),
        ]
        for case in cases:
            with self.subTest(**case):
                with self.assertRaises(InvalidInputError):
                    self.adjust(case["quantity"], case["kind"])

        with self.assertRaises(InvalidInputError):
            self.adjust(1, "ADD", reason="gift")

        self.assertEqual(InventoryLog.objects.count(), 0)

    def test_unknown_product_is_not_found(self):
        other_store = make_store("Elsewhere")
        foreign = make_product(other_store, qty=5)

        with self.assertRaises(StockUnitNotFoundError):
            adjust_stock(
                store=self.store,
                product_id=foreign.id,
                quantity=1,
                adjustment_type="REMOVE",
                reason=InventoryReason.DAMAGED,
            )

        foreign.refresh_from_db()
        self.assertEqual(foreign.inventory_qty, 5)

    def test_anonymous_adjustment_has_no_user(self):
        adjust_stock(
            store=self.store,
            product_id=self.product.id,
            quantity=1,
            adjustment_type="ADD",
            reason=InventoryReason.RESTOCK,
        )
        self.assertIsNone(InventoryLog.objects.get().user)

    def test_ledger_forms_a_chain_over_many_adjustments(self):
        operations = [
            (5, "ADD"),
            (3, "REMOVE"),
            (40, "SET"),
            (0, "ADD"),
            (39, "REMOVE"),
            (12, "SET"),
        ]
        for qty, kind in operations:
            self.adjust(qty, kind)

        logs = list(InventoryLog.objects.filter(product=self.product).order_by("seq"))
        self.assertEqual(len(logs), len(operations))

        final = assert_chain_consistent(self, logs, initial_qty=20)
        self.product.refresh_from_db()
        self.assertEqual(final, self.product.inventory_qty)
        self.assertEqual(final, 12)


class VariantAdjustmentTests(TestCase):
    def setUp(self):
        self.store = make_store()
        self.product = make_product(self.store, sku="SHOE", name="Shoe", qty=100, threshold=10)
        self.variant = make_variant(self.product, sku="SHOE-42", name="42", qty=8, threshold=3)

    def test_variant_adjustment_leaves_product_quantity_alone(self):
        result = adjust_stock(
            store=self.store,
            product_id=self.product.id,
            variant_id=self.variant.id,
            quantity=6,
            adjustment_type="REMOVE",
            reason=InventoryReason.DAMAGED,
        )

        self.variant.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(self.variant.inventory_qty, 2)
        self.assertEqual(self.variant.inventory_status, InventoryStatus.LOW_STOCK)
        self.assertEqual(self.product.inventory_qty, 100)

        log = InventoryLog.objects.get()
        self.assertEqual(log.variant, self.variant)
        self.assertEqual(log.product, self.product)
        self.assertEqual(log.sku, "SHOE-42")
        self.assertEqual(log.product_name, "Shoe - 42")

        self.assertEqual(result.alert.entity_type, AuditLog.EntityType.PRODUCT_VARIANT)
        self.assertEqual(result.alert.entity_id, self.variant.id)

    def test_insufficient_variant_stock_reports_variant_quantity(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            adjust_stock(
                store=self.store,
                product_id=self.product.id,
                variant_id=self.variant.id,
                quantity=9,
                adjustment_type="REMOVE",
                reason=InventoryReason.DAMAGED,
            )
        self.assertEqual(ctx.exception.available, 8)


class LedgerImmutabilityTests(TestCase):
    def setUp(self):
        self.store = make_store()
        self.product = make_product(self.store, qty=5)
        adjust_stock(
            store=self.store,
            product_id=self.product.id,
            quantity=2,
            adjustment_type="ADD",
            reason=InventoryReason.RESTOCK,
        )
        self.log = InventoryLog.objects.get()

    def test_ledger_rows_cannot_be_updated(self):
        self.log.note = "edited"
        with self.assertRaises(ValidationError):
            self.log.save()

    def test_ledger_rows_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.log.delete()
        self.assertTrue(InventoryLog.objects.filter(pk=self.log.pk).exists())

    def test_inconsistent_change_is_rejected(self):
        with self.assertRaises(ValidationError):
            InventoryLog.objects.create(
                store=self.store,
                product=self.product,
                sku=self.product.sku,
                product_name=self.product.name,
                previous_qty=7,
                new_qty=9,
                change_qty=5,
                reason=InventoryReason.RESTOCK,
            )


class ThresholdWalkthroughTests(TestCase):
    """
    Threshold 5, walking one product from comfortable stock into a
    rejected removal.
    """

    def setUp(self):
        self.store = make_store()
        self.product = make_product(self.store, sku="WALK", qty=10, threshold=5)

    def remove(self, quantity):
        return adjust_stock(
            store=self.store,
            product_id=self.product.id,
            quantity=quantity,
            adjustment_type="REMOVE",
            reason=InventoryReason.MANUAL_ADJUSTMENT,
        )

    def test_walk_down_through_low_stock(self):
        first = self.remove(3)
        self.assertEqual(first.status, InventoryStatus.IN_STOCK)
        self.assertIsNone(first.alert)
        log = InventoryLog.objects.get()
        self.assertEqual((log.previous_qty, log.new_qty, log.change_qty), (10, 7, -3))

        second = self.remove(5)
        self.assertEqual(second.new_qty, 2)
        self.assertEqual(second.status, InventoryStatus.LOW_STOCK)
        self.assertIsNotNone(second.alert)

        with self.assertRaises(InsufficientStockError) as ctx:
            self.remove(10)
        self.assertEqual(ctx.exception.details, {"available": 2, "requested": 10})

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 2)
        self.assertEqual(InventoryLog.objects.count(), 2)
        self.assertEqual(AuditLog.objects.count(), 1)
