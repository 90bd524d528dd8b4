from __future__ import annotations

from decimal import Decimal

import pytest

from pos.errors import ValidationError
from pos.listing import filter_orders, order_stats
from pos.models import OrderStatus, OrderType


@pytest.fixture
def orders(make_order):
    return [
        make_order(minutes_ago=50, status=OrderStatus.COMPLETED, customer_name="Amina Nkeng"),
        make_order(minutes_ago=40, status=OrderStatus.SERVED, order_type=OrderType.DINE_IN, table_id="t2"),
        make_order(minutes_ago=30, status=OrderStatus.PENDING, order_type=OrderType.DELIVERY),
        make_order(minutes_ago=20, status=OrderStatus.CANCELLED),
        make_order(minutes_ago=10, status=OrderStatus.IN_KITCHEN, branch_id="2"),
    ]


def test_all_orders_newest_first(orders) -> None:
    assert filter_orders(orders) == list(reversed(orders))


def test_active_includes_served_orders(orders) -> None:
    active = filter_orders(orders, status="active")
    assert [o.status for o in active] == [OrderStatus.IN_KITCHEN, OrderStatus.PENDING, OrderStatus.SERVED]


def test_single_status_type_and_branch_filters(orders) -> None:
    assert filter_orders(orders, status="completed") == [orders[0]]
    assert filter_orders(orders, order_type="delivery") == [orders[2]]
    assert filter_orders(orders, branch_id="2") == [orders[4]]


def test_search_matches_number_name_and_table(orders) -> None:
    assert filter_orders(orders, search=orders[3].order_number.lower()) == [orders[3]]
    assert filter_orders(orders, search="NKENG") == [orders[0]]
    assert filter_orders(orders, search="2", order_type="dine-in") == [orders[1]]


def test_unknown_filters_are_rejected(orders) -> None:
    with pytest.raises(ValidationError):
        filter_orders(orders, status="lost")
    with pytest.raises(ValidationError):
        filter_orders(orders, order_type="drive-through")


def test_stats_count_open_orders_and_revenue(orders) -> None:
    stats = order_stats(orders)
    assert stats["active"] == 3
    assert stats["pending"] == 1
    assert stats["completed"] == 1
    assert stats["revenue"] == orders[0].total + orders[1].total
    assert order_stats([])["revenue"] == Decimal("0")
