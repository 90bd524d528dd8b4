from __future__ import annotations

import pytest

from pos.errors import IllegalTransition, ValidationError
from pos.models import OrderStatus
from pos.status import (
    Actor,
    advance,
    can_transition,
    force_status,
    kitchen_queue,
    kitchen_stats,
    track,
    transition,
)


def test_orders_walk_the_sequence_to_completion(make_order, now) -> None:
    order = make_order()
    for expected in (OrderStatus.IN_KITCHEN, OrderStatus.READY, OrderStatus.SERVED, OrderStatus.COMPLETED):
        order = advance(order, now=now)
        assert order.status is expected

    assert order.completed_at == now


def test_transition_returns_a_copy(make_order) -> None:
    order = make_order()
    moved = transition(order, "in-kitchen")
    assert order.status is OrderStatus.PENDING
    assert moved.status is OrderStatus.IN_KITCHEN


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (OrderStatus.PENDING, OrderStatus.READY),
        (OrderStatus.READY, OrderStatus.IN_KITCHEN),
        (OrderStatus.SERVED, OrderStatus.PENDING),
        (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.PENDING),
    ],
)
def test_illegal_transitions_are_rejected(make_order, current, target) -> None:
    with pytest.raises(IllegalTransition) as excinfo:
        transition(make_order(status=current), target)
    assert (excinfo.value.current, excinfo.value.target) == (current.value, target.value)


@pytest.mark.parametrize(
    "current",
    [OrderStatus.PENDING, OrderStatus.IN_KITCHEN, OrderStatus.READY, OrderStatus.SERVED],
)
def test_any_open_order_can_be_cancelled(make_order, current) -> None:
    assert transition(make_order(status=current), OrderStatus.CANCELLED).status is OrderStatus.CANCELLED


def test_terminal_orders_cannot_advance(make_order) -> None:
    with pytest.raises(IllegalTransition):
        advance(make_order(status=OrderStatus.COMPLETED))


def test_kitchen_staff_only_cook_and_mark_ready(make_order) -> None:
    assert can_transition(OrderStatus.PENDING, OrderStatus.IN_KITCHEN, Actor.KITCHEN)
    assert can_transition(OrderStatus.IN_KITCHEN, OrderStatus.READY, Actor.KITCHEN)
    assert not can_transition(OrderStatus.READY, OrderStatus.SERVED, Actor.KITCHEN)

    with pytest.raises(IllegalTransition):
        transition(make_order(), OrderStatus.CANCELLED, actor="kitchen")


def test_customers_cannot_change_orders(make_order) -> None:
    with pytest.raises(IllegalTransition):
        advance(make_order(), actor=Actor.CUSTOMER)


def test_unknown_status_or_actor_is_a_validation_error(make_order) -> None:
    with pytest.raises(ValidationError):
        transition(make_order(), "burnt")
    with pytest.raises(ValidationError):
        transition(make_order(), "in-kitchen", actor="robot")


def test_managers_can_override_open_orders(make_order, now) -> None:
    order = force_status(make_order(), OrderStatus.COMPLETED, now=now)
    assert order.status is OrderStatus.COMPLETED
    assert order.completed_at == now


@pytest.mark.parametrize(
    ("status", "target", "actor"),
    [
        (OrderStatus.PENDING, OrderStatus.COMPLETED, Actor.POS),
        (OrderStatus.CANCELLED, OrderStatus.PENDING, Actor.MANAGER),
        (OrderStatus.READY, OrderStatus.READY, Actor.MANAGER),
    ],
)
def test_override_limits(make_order, status, target, actor) -> None:
    with pytest.raises(IllegalTransition):
        force_status(make_order(status=status), target, actor=actor)


def test_kitchen_queue_is_oldest_first_with_urgency(make_order, now) -> None:
    recent = make_order(minutes_ago=5)
    late = make_order(minutes_ago=20, status=OrderStatus.IN_KITCHEN)
    borderline = make_order(minutes_ago=15, status=OrderStatus.READY)
    served = make_order(minutes_ago=40, status=OrderStatus.SERVED)
    other_branch = make_order(minutes_ago=30, branch_id="2")

    tickets = kitchen_queue([recent, late, borderline, served, other_branch], now=now, branch_id="1")

    assert [ticket.order for ticket in tickets] == [late, borderline, recent]
    assert [ticket.wait_minutes for ticket in tickets] == [20, 15, 5]
    assert [ticket.urgent for ticket in tickets] == [True, False, False]
    assert kitchen_stats(tickets) == {"pending": 1, "cooking": 1, "ready": 1}


def test_tracking_maps_status_to_steps(make_order, now) -> None:
    view = track(make_order(status=OrderStatus.IN_KITCHEN, minutes_ago=10), now=now)
    assert view.current_step == "Preparing"
    assert (view.eta_minutes, view.eta_label) == (20, "20 mins")

    assert track(make_order(minutes_ago=45), now=now).eta_label == "Soon"
    assert track(make_order(status=OrderStatus.COMPLETED), now=now).current_step == "Served"


@pytest.mark.parametrize(
    ("status", "index", "label"),
    [
        (OrderStatus.SERVED, 3, "Completed"),
        (OrderStatus.COMPLETED, 3, "Completed"),
        (OrderStatus.CANCELLED, -1, "Cancelled"),
    ],
)
def test_tracking_end_states(make_order, now, status, index, label) -> None:
    view = track(make_order(status=status), now=now)
    assert view.step_index == index
    assert view.eta_label == label
