import pytest

from modules.orders.constants import TERMINAL_STATES, VALID_TRANSITIONS, OrderStatus
from modules.orders.models import Order

pytestmark = pytest.mark.unit


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(OrderStatus.values)

    def test_terminal_states_have_no_exits(self):
        assert TERMINAL_STATES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
        for status in TERMINAL_STATES:
            assert VALID_TRANSITIONS[status] == set()

    def test_no_self_transitions(self):
        for status, targets in VALID_TRANSITIONS.items():
            assert status not in targets


class TestCanTransitionTo:
    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PLACED, OrderStatus.PROCESSING),
            (OrderStatus.PLACED, OrderStatus.CANCELLED),
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
            (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
        ],
    )
    def test_legal_transitions(self, current, target):
        assert Order(status=current).can_transition_to(target) is True

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PLACED, OrderStatus.SHIPPED),
            (OrderStatus.PLACED, OrderStatus.DELIVERED),
            (OrderStatus.PLACED, OrderStatus.PLACED),
            (OrderStatus.PROCESSING, OrderStatus.PLACED),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
            (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
            (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
            (OrderStatus.CANCELLED, OrderStatus.PLACED),
        ],
    )
    def test_illegal_transitions(self, current, target):
        assert Order(status=current).can_transition_to(target) is False

    def test_unknown_status_is_never_reachable(self):
        assert Order(status=OrderStatus.PLACED).can_transition_to("REFUNDED") is False

    def test_is_terminal(self):
        assert Order(status=OrderStatus.DELIVERED).is_terminal is True
        assert Order(status=OrderStatus.CANCELLED).is_terminal is True
        assert Order(status=OrderStatus.SHIPPED).is_terminal is False

    def test_new_order_defaults(self):
        order = Order()
        assert order.status == OrderStatus.PLACED
        assert order.version == 1
