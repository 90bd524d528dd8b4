"""Order list filtering and summary stats for the order management view."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pos import data
from pos.models import Order, OrderStatus, OrderType, parse_choice
from pos.money import ZERO

# Orders still on the floor, served ones included until they are settled.
ACTIVE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.IN_KITCHEN, OrderStatus.READY, OrderStatus.SERVED})
REVENUE_STATUSES = frozenset({OrderStatus.SERVED, OrderStatus.COMPLETED})


def _table_reference(order: Order) -> str:
    if order.table_id is None:
        return ""
    entry = data.table(order.table_id)
    return str(entry.number) if entry is not None else order.table_id


def _matches_search(order: Order, query: str) -> bool:
    return (
        query in order.order_number.lower()
        or query in order.customer_name.lower()
        or (bool(order.table_id) and query in _table_reference(order).lower())
    )


def _status_filter(status: OrderStatus | str) -> frozenset[OrderStatus] | None:
    if status == "all":
        return None
    if status == "active":
        return ACTIVE_STATUSES
    return frozenset({parse_choice(OrderStatus, status, "order status")})


def filter_orders(
    orders: Iterable[Order],
    branch_id: str | None = None,
    status: OrderStatus | str = "all",
    order_type: OrderType | str = "all",
    search: str = "",
) -> list[Order]:
    """Narrow a list of orders, newest first.

    ``status`` is ``all``, ``active`` or a single status. ``search`` matches
    order number, customer name or table number, ignoring case.
    """
    wanted_statuses = _status_filter(status)
    wanted_type = None if order_type == "all" else parse_choice(OrderType, order_type, "order type")
    query = search.strip().lower()

    result = [
        order
        for order in orders
        if (branch_id is None or order.branch_id == branch_id)
        and (wanted_statuses is None or order.status in wanted_statuses)
        and (wanted_type is None or order.order_type is wanted_type)
        and (not query or _matches_search(order, query))
    ]
    result.sort(key=lambda order: order.created_at, reverse=True)
    return result


def order_stats(orders: Iterable[Order]) -> dict[str, int | Decimal]:
    """Active, pending and completed counts plus revenue from served and completed orders."""
    active = pending = completed = 0
    revenue = ZERO
    for order in orders:
        if order.status in ACTIVE_STATUSES:
            active += 1
        if order.status is OrderStatus.PENDING:
            pending += 1
        if order.status is OrderStatus.COMPLETED:
            completed += 1
        if order.status in REVENUE_STATUSES:
            revenue += order.total
    return {"active": active, "pending": pending, "completed": completed, "revenue": revenue}
