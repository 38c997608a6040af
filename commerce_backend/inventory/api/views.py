# inventory/api/views.py

"""
INVENTORY ADMIN ENDPOINTS

Thin handlers: validate request shape, pick the store, call the inventory
service, map typed errors to the canonical error body.
"""

import logging
import uuid

from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from inventory.models import InventoryReason
from inventory.services import (
    InvalidInputError,
    InventoryServiceError,
    adjust_stock,
    bulk_adjust,
    update_inventory_from_external,
)
from inventory.services.engine import AdjustmentType
from inventory.services.queries import (
    get_inventory_history,
    get_inventory_levels,
    get_low_stock_alerts,
    get_low_stock_count,
    get_low_stock_items,
)

from .csv_upload import parse_bulk_csv
from .errors import inventory_error_response
from .serializers import (
    BulkAdjustmentCommandSerializer,
    BulkCsvUploadSerializer,
    ExternalSyncCommandSerializer,
    InventoryLevelSerializer,
    InventoryLogSerializer,
    LowStockAlertSerializer,
    StockAdjustmentCommandSerializer,
    StockUnitSnapshotSerializer,
)
from .store_scope import get_active_store, store_from_request

logger = logging.getLogger(__name__)


def uuid_param(params, name: str, *, required: bool = False):
    value = (params.get(name) or "").strip()
    if not value:
        if required:
            raise InvalidInputError(f"{name} is required")
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        raise InvalidInputError(f"{name} must be a valid UUID")


def non_negative_int_param(params, name: str):
    value = (params.get(name) or "").strip()
    if not value:
        return None
    if not value.isdecimal():
        raise InvalidInputError(f"{name} must be a non-negative integer")
    return int(value)


def _adjustment_payload(result) -> dict:
    unit = result.unit
    snapshot = StockUnitSnapshotSerializer(
        {
            "product_id": unit.product_id,
            "variant_id": unit.variant_id,
            "sku": unit.sku,
            "name": unit.name,
            "quantity": result.new_qty,
            "low_stock_threshold": unit.low_stock_threshold,
            "status": result.status,
        }
    ).data
    return {
        "unit": snapshot,
        "previous_qty": result.previous_qty,
        "new_qty": result.new_qty,
        "change_qty": result.transition.change_qty,
        "log_id": str(result.log.id),
        "low_stock_alert": result.alert is not None,
    }


# ======================================================
# WRITE ENDPOINTS
# ======================================================

class StockAdjustmentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["inventory"], description="List adjustment reasons and types")
    def get(self, request):
        return Response(
            {
                "reasons": [{"value": v, "label": label} for v, label in InventoryReason.choices],
                "types": [{"value": v, "label": label} for v, label in AdjustmentType.choices],
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["inventory"],
        request=StockAdjustmentCommandSerializer,
        description="Adjust stock for one product or variant",
    )
    def post(self, request):
        serializer = StockAdjustmentCommandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            store = get_active_store(data["store_id"])
            result = adjust_stock(
                store=store,
                product_id=data["product_id"],
                variant_id=data.get("variant_id"),
                quantity=data["quantity"],
                adjustment_type=data["type"],
                reason=data["reason"],
                note=data.get("note", ""),
                user=request.user,
            )
        except InventoryServiceError as exc:
            return inventory_error_response(exc)

        return Response(_adjustment_payload(result), status=status.HTTP_200_OK)


class BulkAdjustmentView(APIView):
    """
    JSON body: {"store_id": ..., "items": [...]}
    or multipart: store_id + CSV `file`.

    200 when every item succeeded, 207 when some failed.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        tags=["inventory"],
        request=BulkAdjustmentCommandSerializer,
        description="Bulk adjust stock (JSON items or CSV upload)",
    )
    def post(self, request):
        try:
            if "file" in request.FILES:
                upload = BulkCsvUploadSerializer(data=request.data)
                upload.is_valid(raise_exception=True)
                store = get_active_store(upload.validated_data["store_id"])
                items = parse_bulk_csv(upload.validated_data["file"])
                logger.info("Bulk CSV upload parsed", extra={"rows": len(items), "store_id": str(store.id)})
            else:
                command = BulkAdjustmentCommandSerializer(data=request.data)
                command.is_valid(raise_exception=True)
                store = get_active_store(command.validated_data["store_id"])
                items = command.validated_data["items"]

            result = bulk_adjust(store=store, items=items, user=request.user)
        except InventoryServiceError as exc:
            return inventory_error_response(exc)

        body = {
            "message": (
                f"Processed {result.total} items: "
                f"{result.succeeded} succeeded, {result.failed} failed"
            ),
            **result.as_dict(),
        }
        http_status = status.HTTP_207_MULTI_STATUS if result.has_failures else status.HTTP_200_OK
        return Response(body, status=http_status)


class ExternalSyncView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["inventory"],
        request=ExternalSyncCommandSerializer,
        description="Set absolute stock level from an external marketplace",
    )
    def post(self, request):
        serializer = ExternalSyncCommandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            store = get_active_store(data["store_id"])
            result = update_inventory_from_external(
                store=store,
                product_id=data["product_id"],
                variant_id=data.get("variant_id"),
                quantity=data["quantity"],
                source=data.get("source", ""),
                user=request.user,
            )
        except InventoryServiceError as exc:
            return inventory_error_response(exc)

        return Response(_adjustment_payload(result), status=status.HTTP_200_OK)


# ======================================================
# READ ENDPOINTS
# ======================================================

class StoreScopedListView(generics.ListAPIView):
    """
    ListAPIView that resolves ?store_id= before building the queryset and
    answers with the canonical error body when the store is unusable.
    """

    permission_classes = [IsAuthenticated]

    def list(self, request, *args, **kwargs):
        try:
            self.store = store_from_request(request)
            return super().list(request, *args, **kwargs)
        except InventoryServiceError as exc:
            return inventory_error_response(exc)


class InventoryLevelListView(StoreScopedListView):
    serializer_class = InventoryLevelSerializer

    def get_queryset(self):
        params = self.request.query_params
        low_stock_only = (params.get("low_stock_only") or "").lower() in {"1", "true", "yes"}
        return get_inventory_levels(
            store=self.store,
            search=params.get("search"),
            category_id=uuid_param(params, "category_id"),
            low_stock_only=low_stock_only,
        )

    @extend_schema(tags=["inventory"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class InventoryHistoryView(StoreScopedListView):
    serializer_class = InventoryLogSerializer
    filterset_fields = ["reason", "variant", "order"]

    def get_queryset(self):
        return get_inventory_history(
            store=self.store,
            product_id=uuid_param(self.request.query_params, "product_id", required=True),
        )

    @extend_schema(tags=["inventory"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class LowStockAlertListView(StoreScopedListView):
    serializer_class = LowStockAlertSerializer

    def get_queryset(self):
        return get_low_stock_alerts(store=self.store)

    @extend_schema(tags=["inventory"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class LowStockView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["inventory"],
        description="Low-stock products/variants and counts; `threshold` overrides the variant check",
    )
    def get(self, request):
        try:
            store = store_from_request(request)
            threshold = non_negative_int_param(request.query_params, "threshold")
        except InventoryServiceError as exc:
            return inventory_error_response(exc)

        return Response(
            {
                "items": get_low_stock_items(store=store, threshold=threshold),
                "counts": get_low_stock_count(store=store),
            },
            status=status.HTTP_200_OK,
        )
