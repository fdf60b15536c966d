"""Tests for the order status transition table."""

import pytest

from conftest import T0
from productshop.domain.errors import PreconditionFailedError
from productshop.domain.order_status import (
    ALLOWED_TRANSITIONS,
    OrderStatus,
    can_transition,
    ensure_transition,
    is_cancellable,
    is_returnable,
    transition_changes,
)

TERMINAL = [OrderStatus.PAYMENT_FAILED, OrderStatus.ORDER_CANCELLED, OrderStatus.RETURN_REQUESTED]


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)

    def test_paying_settles_either_way(self):
        assert ALLOWED_TRANSITIONS[OrderStatus.PAYING] == {
            OrderStatus.PAYMENT_COMPLETED,
            OrderStatus.PAYMENT_FAILED,
        }

    @pytest.mark.parametrize("status", TERMINAL)
    def test_terminal_statuses_have_no_successors(self, status):
        assert ALLOWED_TRANSITIONS[status] == frozenset()

    def test_only_completed_orders_are_cancellable(self):
        cancellable = [s for s in OrderStatus if is_cancellable(s)]
        assert cancellable == [OrderStatus.PAYMENT_COMPLETED]

    def test_only_delivered_orders_are_returnable(self):
        returnable = [s for s in OrderStatus if is_returnable(s)]
        assert returnable == [OrderStatus.DELIVERED]

    def test_accepts_raw_string_status(self):
        assert can_transition("SHIPPING", OrderStatus.DELIVERED)


class TestEnsureTransition:
    def test_cancel_after_shipping_message(self):
        with pytest.raises(PreconditionFailedError, match="after it has been shipped"):
            ensure_transition(OrderStatus.SHIPPING, OrderStatus.ORDER_CANCELLED)

    def test_return_before_delivery_message(self):
        with pytest.raises(PreconditionFailedError, match="Only delivered orders"):
            ensure_transition(OrderStatus.PAYMENT_COMPLETED, OrderStatus.RETURN_REQUESTED)

    def test_generic_message_names_both_states(self):
        with pytest.raises(PreconditionFailedError, match="PAYING to SHIPPING"):
            ensure_transition(OrderStatus.PAYING, OrderStatus.SHIPPING)


class TestTransitionChanges:
    def test_stamps_status_and_change_time(self):
        changes = transition_changes(OrderStatus.PAYMENT_COMPLETED, OrderStatus.SHIPPING, T0)
        assert changes == {"status": "SHIPPING", "updated_at": T0}

    def test_completion_marks_paid(self):
        changes = transition_changes(OrderStatus.PAYING, OrderStatus.PAYMENT_COMPLETED, T0)
        assert changes["paid"] is True

    def test_failure_leaves_paid_unset(self):
        changes = transition_changes(OrderStatus.PAYING, OrderStatus.PAYMENT_FAILED, T0)
        assert "paid" not in changes

    def test_illegal_transition_raises(self):
        with pytest.raises(PreconditionFailedError):
            transition_changes(OrderStatus.ORDER_CANCELLED, OrderStatus.SHIPPING, T0)
