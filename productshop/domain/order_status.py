# productshop/domain/order_status.py
from datetime import datetime
from enum import Enum

from productshop.domain.errors import PreconditionFailedError


class OrderStatus(str, Enum):
    PAYING = "PAYING"
    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    SHIPPING = "SHIPPING"
    DELIVERED = "DELIVERED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    RETURN_REQUESTED = "RETURN_REQUESTED"


class CardCompany(str, Enum):
    SHINHAN = "SHINHAN"
    KB = "KB"
    HYUNDAI = "HYUNDAI"
    SAMSUNG = "SAMSUNG"
    LOTTE = "LOTTE"
    HANA = "HANA"
    WOORI = "WOORI"
    NH = "NH"
    BC = "BC"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PAYING: frozenset({OrderStatus.PAYMENT_COMPLETED, OrderStatus.PAYMENT_FAILED}),
    OrderStatus.PAYMENT_COMPLETED: frozenset({OrderStatus.ORDER_CANCELLED, OrderStatus.SHIPPING}),
    OrderStatus.SHIPPING: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURN_REQUESTED}),
    OrderStatus.PAYMENT_FAILED: frozenset(),
    OrderStatus.ORDER_CANCELLED: frozenset(),
    OrderStatus.RETURN_REQUESTED: frozenset(),
}

_REJECTION_MESSAGES = {
    OrderStatus.ORDER_CANCELLED: "Cannot cancel order after it has been shipped.",
    OrderStatus.RETURN_REQUESTED: "Only delivered orders can be returned.",
}


def can_transition(current: OrderStatus | str, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[OrderStatus(current)]


def is_cancellable(current: OrderStatus | str) -> bool:
    return can_transition(current, OrderStatus.ORDER_CANCELLED)


def is_returnable(current: OrderStatus | str) -> bool:
    return can_transition(current, OrderStatus.RETURN_REQUESTED)


def ensure_transition(current: OrderStatus | str, target: OrderStatus) -> None:
    if not can_transition(current, target):
        message = _REJECTION_MESSAGES.get(
            target, f"Cannot move order from {OrderStatus(current).value} to {target.value}."
        )
        raise PreconditionFailedError(message)


def transition_changes(current: OrderStatus | str, target: OrderStatus, at: datetime) -> dict:
    """Column values for moving an order from ``current`` to ``target``.

    Raises PreconditionFailedError for an illegal move. The caller writes
    the values conditionally on the order still being in ``current``.
    """
    ensure_transition(current, target)
    changes = {"status": target.value, "updated_at": at}
    if target is OrderStatus.PAYMENT_COMPLETED:
        changes["paid"] = True
    return changes
