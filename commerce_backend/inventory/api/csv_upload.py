# inventory/api/csv_upload.py

"""
CSV -> bulk adjustment items.

Expected header (any subset, case-insensitive):
  product_id, variant_id, sku, variant_sku, quantity, type, reason, note

Defaults: type=SET, reason=manual_adjustment.
Row-level problems (bad quantity, unknown SKU, bad type) are left to
bulk_adjust so they are reported per item.
"""

import csv
import io

from inventory.models import InventoryReason
from inventory.services.exceptions import InvalidInputError

COLUMNS = ("product_id", "variant_id", "sku", "variant_sku", "quantity", "type", "reason", "note")


def parse_bulk_csv(uploaded_file) -> list[dict]:
    raw = uploaded_file.read()
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise InvalidInputError("CSV file must be UTF-8 encoded")

    reader = csv.DictReader(io.StringIO(raw))
    if not reader.fieldnames:
        raise InvalidInputError("CSV file is empty")

    items = []
    for record in reader:
        row = {
            (key or "").strip().lower(): (value or "").strip()
            for key, value in record.items()
            if key is not None
        }
        if not any(row.values()):
            continue

        item = {name: row.get(name) or None for name in COLUMNS}
        item["type"] = (item["type"] or "SET").upper()
        item["reason"] = (item["reason"] or InventoryReason.MANUAL_ADJUSTMENT).lower()
        item["note"] = item["note"] or ""
        items.append(item)

    return items
