"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed status transitions for Orders.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth

REFUNDED is reachable only through process_refund (payment-driven),
never through update_order_status.
"""

from orders.models import Order

from .exceptions import InvalidOrderTransitionError

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Order.Status.CANCELED,
    Order.Status.REFUNDED,
}

ALLOWED_TRANSITIONS = {
    Order.Status.PENDING: {
        Order.Status.PROCESSING,
        Order.Status.CANCELED,
    },
    Order.Status.PROCESSING: {
        Order.Status.SHIPPED,
        Order.Status.CANCELED,
    },
    Order.Status.SHIPPED: {
        Order.Status.DELIVERED,
    },
}

REFUNDABLE_STATES = {
    Order.Status.PENDING,
    Order.Status.PROCESSING,
    Order.Status.SHIPPED,
    Order.Status.DELIVERED,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(
        from_status=order.status,
        to_status=target_status,
    ):
        raise InvalidOrderTransitionError(
            f"Order {order.order_number} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )
