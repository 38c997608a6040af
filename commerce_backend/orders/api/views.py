# orders/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.api.errors import error_response, inventory_error_response
from inventory.api.store_scope import get_active_store
from inventory.services import InventoryServiceError
from orders.models import Order
from orders.services.exceptions import (
    InvalidOrderTransitionError,
    OrderError,
    OrderStockError,
    OrderValidationError,
    RefundError,
)
from orders.services.order_processing import (
    create_order,
    mark_order_paid,
    process_refund,
    update_order_status,
)

from .serializers import (
    OrderCreateCommandSerializer,
    OrderRefundCommandSerializer,
    OrderSerializer,
    OrderStatusCommandSerializer,
)


def order_error_response(exc: OrderError):
    if isinstance(exc, OrderStockError):
        return inventory_error_response(exc.inventory_error)

    if isinstance(exc, OrderValidationError):
        return error_response(
            code="INVALID_INPUT",
            message=str(exc),
            http_status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, InvalidOrderTransitionError):
        return error_response(
            code="INVALID_ORDER_STATE",
            message=str(exc),
            http_status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, RefundError):
        return error_response(
            code="REFUND_FAILED",
            message=str(exc),
            http_status=status.HTTP_400_BAD_REQUEST,
        )

    return error_response(
        code="ORDER_FAILED",
        message=str(exc),
        http_status=status.HTTP_400_BAD_REQUEST,
    )


class OrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Orders (staff).

    - list/retrieve: optionally scoped by ?store_id=
    - create: atomic order + stock deduction, Idempotency-Key aware
    - status / pay / refund: lifecycle commands
    """

    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status", "payment_status", "payment_method"]

    def get_queryset(self):
        qs = Order.objects.select_related("store").prefetch_related("items")
        store_id = self.request.query_params.get("store_id")
        if store_id:
            qs = qs.filter(store_id=store_id)
        return qs

    def list(self, request, *args, **kwargs):
        store_id = request.query_params.get("store_id")
        if store_id:
            try:
                get_active_store(store_id)
            except InventoryServiceError as exc:
                return inventory_error_response(exc)
        return super().list(request, *args, **kwargs)

    @extend_schema(
        tags=["orders"],
        request=OrderCreateCommandSerializer,
        responses={201: OrderSerializer},
        description="Create an order and deduct its stock atomically",
    )
    def create(self, request, *args, **kwargs):
        command = OrderCreateCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = dict(command.validated_data)

        try:
            store = get_active_store(data.pop("store_id"))
        except InventoryServiceError as exc:
            return inventory_error_response(exc)

        idempotency_key = request.headers.get("Idempotency-Key")
        if idempotency_key:
            already = Order.objects.filter(store=store, idempotency_key=idempotency_key.strip()).exists()
        else:
            already = False

        items = [dict(item) for item in data.pop("items")]

        try:
            order = create_order(
                store=store,
                user=request.user,
                items=items,
                idempotency_key=idempotency_key,
                **data,
            )
        except OrderError as exc:
            return order_error_response(exc)

        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_200_OK if already else status.HTTP_201_CREATED,
        )

    @extend_schema(tags=["orders"], request=OrderStatusCommandSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        order = self.get_object()

        command = OrderStatusCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = update_order_status(
                order=order,
                status=command.validated_data["status"],
                user=request.user,
                tracking_number=command.validated_data.get("tracking_number"),
            )
        except OrderError as exc:
            return order_error_response(exc)
        except InventoryServiceError as exc:
            return inventory_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["orders"], request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="pay")
    def pay(self, request, pk=None):
        order = self.get_object()

        try:
            order = mark_order_paid(order=order)
        except OrderError as exc:
            return order_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["orders"], request=OrderRefundCommandSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="refund")
    def refund(self, request, pk=None):
        order = self.get_object()

        command = OrderRefundCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            order = process_refund(
                order=order,
                amount=command.validated_data["amount"],
                reason=command.validated_data.get("reason", ""),
                user=request.user,
            )
        except OrderError as exc:
            return order_error_response(exc)
        except InventoryServiceError as exc:
            return inventory_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)
