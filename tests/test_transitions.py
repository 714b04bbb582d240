"""Tests for the order status transition table."""

import pytest

from quickserve.core.exceptions import InvalidTransition
from quickserve.domain.order import Order, OrderLine, OrderStatus, PaymentMethod
from quickserve.domain.transitions import (
    DEFAULT_TRANSITIONS,
    build_transition_table,
    can_transition,
    is_terminal,
    transition_status,
)


def _make_order(status=OrderStatus.PREPARING):
    order = Order.create(
        order_number="ORD00001",
        table_id="T1",
        table_number=1,
        items=[OrderLine("pizza", "Margherita Pizza", 299, 1)],
        payment_method=PaymentMethod.CASH,
    )
    order.status = status
    return order


class TestTransitionTable:
    def test_forward_path(self):
        assert can_transition(OrderStatus.PENDING, OrderStatus.PREPARING)
        assert can_transition(OrderStatus.PREPARING, OrderStatus.PREPARED)
        assert can_transition(OrderStatus.PREPARED, OrderStatus.DELIVERED)

    def test_cancel_from_pending_and_preparing(self):
        assert can_transition(OrderStatus.PENDING, OrderStatus.CANCELLED)
        assert can_transition(OrderStatus.PREPARING, OrderStatus.CANCELLED)

    def test_no_skipping_or_going_back(self):
        assert not can_transition(OrderStatus.PENDING, OrderStatus.PREPARED)
        assert not can_transition(OrderStatus.PREPARING, OrderStatus.DELIVERED)
        assert not can_transition(OrderStatus.PREPARED, OrderStatus.PREPARING)
        assert not can_transition(OrderStatus.PREPARED, OrderStatus.CANCELLED)

    def test_terminal_statuses(self):
        assert is_terminal(OrderStatus.DELIVERED)
        assert is_terminal(OrderStatus.CANCELLED)
        assert not is_terminal(OrderStatus.PREPARED)
        for target in OrderStatus:
            if target != OrderStatus.DELIVERED:
                assert not can_transition(OrderStatus.DELIVERED, target)

    def test_cancel_while_preparing_can_be_disabled(self):
        table = build_transition_table(allow_cancel_while_preparing=False)
        assert not can_transition(OrderStatus.PREPARING, OrderStatus.CANCELLED, table)
        assert can_transition(OrderStatus.PENDING, OrderStatus.CANCELLED, table)

    def test_default_table_allows_cancel_while_preparing(self):
        assert OrderStatus.CANCELLED in DEFAULT_TRANSITIONS[OrderStatus.PREPARING]


class TestTransitionStatus:
    def test_valid_transition_updates_status_and_timestamp(self):
        order = _make_order(OrderStatus.PREPARING)
        before = order.updated_at

        transition_status(order, OrderStatus.PREPARED)

        assert order.status == OrderStatus.PREPARED
        assert order.updated_at >= before

    def test_same_status_is_a_no_op(self):
        order = _make_order(OrderStatus.PREPARED)
        before = order.updated_at

        result = transition_status(order, OrderStatus.PREPARED)

        assert result is order
        assert order.status == OrderStatus.PREPARED
        assert order.updated_at == before

    def test_same_status_on_terminal_order_is_allowed(self):
        order = _make_order(OrderStatus.DELIVERED)
        transition_status(order, OrderStatus.DELIVERED)
        assert order.status == OrderStatus.DELIVERED

    def test_invalid_transition_raises_and_leaves_order_unchanged(self):
        order = _make_order(OrderStatus.DELIVERED)

        with pytest.raises(InvalidTransition) as exc_info:
            transition_status(order, OrderStatus.PREPARING)

        assert order.status == OrderStatus.DELIVERED
        assert exc_info.value.detail["current_status"] == "delivered"
        assert exc_info.value.detail["target_status"] == "preparing"
        assert exc_info.value.status_code == 409

    def test_accepts_plain_string_target(self):
        order = _make_order(OrderStatus.PREPARING)
        transition_status(order, "prepared")
        assert order.status == OrderStatus.PREPARED

    def test_respects_custom_table(self):
        order = _make_order(OrderStatus.PREPARING)
        table = build_transition_table(allow_cancel_while_preparing=False)

        with pytest.raises(InvalidTransition):
            transition_status(order, OrderStatus.CANCELLED, table)
