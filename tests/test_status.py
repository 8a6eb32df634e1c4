import itertools

import pytest

from storefront.errors import ValidationError
from storefront.status import (
    TRANSITIONS,
    OrderStatus,
    can_transition,
    ensure_transition,
    is_terminal,
)

ALLOWED = {
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}

ALL_PAIRS = list(itertools.product(OrderStatus, repeat=2))


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(TRANSITIONS) == set(OrderStatus)

    @pytest.mark.parametrize("current,target", ALL_PAIRS)
    def test_can_transition_matches_table(self, current, target):
        assert can_transition(current, target) == ((current, target) in ALLOWED)

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_states_are_sinks(self, status):
        assert is_terminal(status)
        for target in OrderStatus:
            assert not can_transition(status, target)

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED])
    def test_non_terminal_states(self, status):
        assert not is_terminal(status)

    def test_no_self_transitions(self):
        for status in OrderStatus:
            assert not can_transition(status, status)


class TestEnsureTransition:
    def test_allowed_passes(self):
        ensure_transition(OrderStatus.PENDING, OrderStatus.PROCESSING)

    def test_rejected_names_both_states(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_transition(OrderStatus.PENDING, OrderStatus.SHIPPED)
        assert exc_info.value.message == "Invalid status transition from Pending to Shipped"
        assert exc_info.value.field == "status"
        assert exc_info.value.status_code == 400
