# orders/services/order_processing.py

"""
ORDER PROCESSING (APPLICATION SERVICE)

Purpose:
- Create orders atomically with stock deduction.
- Drive lifecycle transitions (cancel restores stock).
- Process refunds (restores stock as a return).

Hard rules:
- An order row exists only if deduct_stock_for_order succeeded in the same
  transaction; a stock failure rolls the order back as well.
- Quantities are integer units; money is Decimal 2dp.
- Idempotency-Key replays return the original order unchanged.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import IntegrityError, transaction
from django.utils import timezone

from inventory.services import (
    InventoryServiceError,
    deduct_stock_for_order,
    restore_stock_for_cancellation,
    restore_stock_for_return,
)
from inventory.services.engine import MAX_STOCK_QTY, normalize_quantity
from inventory.services.exceptions import InvalidInputError
from inventory.services.stock_units import resolve_stock_unit
from orders.models import Order, OrderItem

from .exceptions import (
    InvalidOrderTransitionError,
    OrderCreationError,
    OrderStockError,
    OrderValidationError,
    RefundError,
)
from .order_lifecycle import REFUNDABLE_STATES, validate_transition

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

ORDER_NUMBER_ATTEMPTS = 3

PAYMENT_METHOD_ALIASES = {
    "STRIPE": Order.PaymentMethod.CREDIT_CARD,
    "CARD": Order.PaymentMethod.CREDIT_CARD,
    "BKASH": Order.PaymentMethod.MOBILE_BANKING,
    "COD": Order.PaymentMethod.CASH_ON_DELIVERY,
}


def _money(v, *, field: str = "amount") -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise OrderValidationError(f"{field} must be a decimal amount")


def _actor(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user


def map_payment_method(method) -> str:
    m = str(method or "").strip().upper()
    if m in Order.PaymentMethod.values:
        return m
    return PAYMENT_METHOD_ALIASES.get(m, Order.PaymentMethod.CASH_ON_DELIVERY)


def generate_order_number(*, store, today=None) -> str:
    """
    ORD-YYYYMMDD-NNNN, sequential per store per day.
    """
    today = today or timezone.localdate()
    prefix = f"ORD-{today.strftime('%Y%m%d')}"

    last = (
        Order.objects.filter(store=store, order_number__startswith=prefix)
        .order_by("-order_number")
        .values_list("order_number", flat=True)
        .first()
    )

    sequence = 1
    if last:
        try:
            sequence = int(last.rsplit("-", 1)[1]) + 1
        except (IndexError, ValueError):
            sequence = 1

    return f"{prefix}-{sequence:04d}"


def _find_by_idempotency_key(*, store, key):
    if not key:
        return None
    return Order.objects.filter(store=store, idempotency_key=key).first()


def _validate_items(items) -> list[dict]:
    if not items:
        raise OrderValidationError("Order must contain at least one item")

    lines = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise OrderValidationError(f"Invalid item at index {idx}")

        if not item.get("product_id"):
            raise OrderValidationError(f"product_id is required at index {idx}")

        try:
            qty = normalize_quantity(item.get("quantity"))
        except InvalidInputError:
            raise OrderValidationError(f"Invalid quantity at index {idx}. Quantity must be a whole number.")
        if qty < 1:
            raise OrderValidationError(f"Invalid quantity at index {idx}. Quantity must be at least 1.")
        if qty > MAX_STOCK_QTY:
            raise OrderValidationError(f"Invalid quantity at index {idx}. Quantity cannot exceed {MAX_STOCK_QTY}.")

        price = item.get("price")
        if price is not None and price != "":
            price = _money(price, field="price")
            if price < Decimal("0.00"):
                raise OrderValidationError(f"Invalid price at index {idx}. Price cannot be negative.")
        else:
            price = None

        lines.append(
            {
                "index": idx,
                "product_id": item.get("product_id"),
                "variant_id": item.get("variant_id") or None,
                "quantity": qty,
                "price": price,
            }
        )
    return lines


@transaction.atomic
def _create_order_atomic(
    *,
    store,
    user,
    lines,
    payment_method,
    idempotency_key,
    customer_email,
    customer_name,
    customer_phone,
    shipping_address,
    billing_address,
    shipping_method,
    shipping_amount,
    tax_amount,
    notes,
) -> Order:
    enriched = []
    for line in lines:
        try:
            unit = resolve_stock_unit(
                store=store,
                product_id=line["product_id"],
                variant_id=line["variant_id"],
                lock=False,
            )
        except InventoryServiceError as exc:
            exc.details.update({"item_index": line["index"]})
            raise

        price = line["price"]
        if price is None:
            catalogue_price = unit.variant.price if unit.variant and unit.variant.price is not None else unit.product.price
            price = _money(catalogue_price, field="price")

        enriched.append((line, unit, price))

    subtotal = sum((price * line["quantity"] for line, _, price in enriched), Decimal("0.00"))
    subtotal = subtotal.quantize(TWOPLACES)
    total = (subtotal + shipping_amount + tax_amount).quantize(TWOPLACES)

    order = Order.objects.create(
        store=store,
        order_number=generate_order_number(store=store),
        customer_email=customer_email or "",
        customer_name=customer_name or "",
        customer_phone=customer_phone or "",
        shipping_address=shipping_address or "",
        billing_address=billing_address or shipping_address or "",
        shipping_method=shipping_method or "",
        subtotal=subtotal,
        shipping_amount=shipping_amount,
        tax_amount=tax_amount,
        total_amount=total,
        payment_method=payment_method,
        payment_status=Order.PaymentStatus.PENDING,
        status=Order.Status.PENDING,
        idempotency_key=idempotency_key,
        notes=notes or "",
        created_by=_actor(user),
    )

    for line, unit, price in enriched:
        OrderItem.objects.create(
            order=order,
            product=unit.product,
            variant=unit.variant,
            product_name=unit.product.name,
            variant_name=unit.variant.name if unit.variant else "",
            is_variant_line=unit.variant is not None,
            sku=unit.sku,
            quantity=line["quantity"],
            price=price,
        )

    deduct_stock_for_order(
        store=store,
        items=[
            {
                "product_id": line["product_id"],
                "variant_id": line["variant_id"],
                "quantity": line["quantity"],
            }
            for line in lines
        ],
        order=order,
        user=user,
    )

    return order


def create_order(
    *,
    store,
    user=None,
    items,
    payment_method=None,
    customer_email: str = "",
    customer_name: str = "",
    customer_phone: str = "",
    shipping_address: str = "",
    billing_address: str = "",
    shipping_method: str = "",
    shipping_amount=None,
    tax_amount=None,
    notes: str = "",
    idempotency_key: str | None = None,
) -> Order:
    """
    Create an order and deduct its stock in one transaction.

    Raises:
    - OrderValidationError: malformed items/amounts
    - OrderStockError: stock unit missing / insufficient / conflict
      (original error on `.inventory_error`)
    """
    key = (idempotency_key or "").strip() or None

    existing = _find_by_idempotency_key(store=store, key=key)
    if existing is not None:
        logger.info(
            "Idempotent order replay",
            extra={"order_id": str(existing.id), "order_number": existing.order_number},
        )
        return existing

    lines = _validate_items(items)

    shipping = _money(shipping_amount, field="shipping_amount")
    tax = _money(tax_amount, field="tax_amount")
    if shipping < 0 or tax < 0:
        raise OrderValidationError("shipping_amount and tax_amount cannot be negative")

    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        try:
            order = _create_order_atomic(
                store=store,
                user=user,
                lines=lines,
                payment_method=map_payment_method(payment_method),
                idempotency_key=key,
                customer_email=customer_email,
                customer_name=customer_name,
                customer_phone=customer_phone,
                shipping_address=shipping_address,
                billing_address=billing_address,
                shipping_method=shipping_method,
                shipping_amount=shipping,
                tax_amount=tax,
                notes=notes,
            )
        except InventoryServiceError as exc:
            logger.info(
                "Order rejected: stock deduction failed",
                extra={"store_id": str(getattr(store, "id", store)), "code": exc.code, "details": exc.details},
            )
            raise OrderStockError(exc) from exc
        except IntegrityError as exc:
            # Concurrent request with the same key won the race.
            existing = _find_by_idempotency_key(store=store, key=key)
            if existing is not None:
                return existing

            # Order number allocated concurrently; try the next one.
            if attempt == ORDER_NUMBER_ATTEMPTS:
                raise OrderCreationError("Could not allocate an order number") from exc
            logger.warning("Order number collision, retrying", extra={"attempt": attempt})
            continue

        logger.info(
            "Order created",
            extra={
                "order_id": str(order.id),
                "order_number": order.order_number,
                "total_amount": str(order.total_amount),
            },
        )
        return order


def update_order_status(*, order: Order, status, user=None, tracking_number=None) -> Order:
    """
    Lifecycle-validated status change.
    CANCELED restores stock in the same transaction.
    """
    target = str(status or "").strip().upper()
    if target not in Order.Status.values:
        raise OrderValidationError(f"Unknown order status: {status}")

    if target == Order.Status.REFUNDED:
        raise InvalidOrderTransitionError("Orders are refunded through the refund endpoint")

    with transaction.atomic():
        locked = Order.objects.select_for_update().get(pk=order.pk)
        validate_transition(order=locked, target_status=target)

        previous = locked.status
        locked.status = target
        fields = ["status", "updated_at"]

        if tracking_number:
            locked.tracking_number = str(tracking_number).strip()
            fields.append("tracking_number")

        if target == Order.Status.DELIVERED:
            locked.delivered_at = timezone.now()
            fields.append("delivered_at")

        locked.save(update_fields=fields)

        if target == Order.Status.CANCELED:
            restore_stock_for_cancellation(
                store=locked.store_id,
                items=list(locked.items.all()),
                order=locked,
                user=user,
            )

    logger.info(
        "Order status updated",
        extra={"order_number": locked.order_number, "from": previous, "to": target},
    )
    return locked


def mark_order_paid(*, order: Order) -> Order:
    with transaction.atomic():
        locked = Order.objects.select_for_update().get(pk=order.pk)

        if locked.status in (Order.Status.CANCELED, Order.Status.REFUNDED):
            raise InvalidOrderTransitionError(
                f"Order {locked.order_number} is {locked.status} and cannot be paid"
            )
        if locked.payment_status != Order.PaymentStatus.PENDING:
            raise InvalidOrderTransitionError(
                f"Order {locked.order_number} payment is already {locked.payment_status}"
            )

        locked.payment_status = Order.PaymentStatus.PAID
        locked.save(update_fields=["payment_status", "updated_at"])

    logger.info("Order marked paid", extra={"order_number": locked.order_number})
    return locked


def process_refund(*, order: Order, amount, reason: str = "", user=None) -> Order:
    """
    Refund a paid order and restore its stock as a return.
    """
    try:
        refund_amount = Decimal(str(amount)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise RefundError("Refund amount must be a decimal amount")

    with transaction.atomic():
        locked = Order.objects.select_for_update().get(pk=order.pk)

        if locked.payment_status == Order.PaymentStatus.REFUNDED or locked.status == Order.Status.REFUNDED:
            raise RefundError(f"Order {locked.order_number} has already been refunded")

        if locked.payment_status != Order.PaymentStatus.PAID:
            raise RefundError("Cannot refund unpaid order")

        if locked.status not in REFUNDABLE_STATES:
            raise RefundError(f"Order {locked.order_number} is {locked.status} and cannot be refunded")

        if refund_amount <= Decimal("0.00"):
            raise RefundError("Refund amount must be greater than zero")

        if refund_amount > locked.total_amount:
            raise RefundError("Refund amount cannot exceed order total")

        locked.status = Order.Status.REFUNDED
        locked.payment_status = Order.PaymentStatus.REFUNDED
        locked.refunded_amount = refund_amount
        locked.refund_reason = (reason or "").strip()
        locked.save(
            update_fields=[
                "status",
                "payment_status",
                "refunded_amount",
                "refund_reason",
                "updated_at",
            ]
        )

        restore_stock_for_return(
            store=locked.store_id,
            items=list(locked.items.all()),
            order=locked,
            user=user,
        )

    logger.info(
        "Order refunded",
        extra={"order_number": locked.order_number, "amount": str(refund_amount)},
    )
    return locked
