"""Order lifecycle: transition rules and the read-only kitchen and tracking views."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pos.config import ESTIMATED_PREP_MINUTES, URGENT_WAIT_MINUTES
from pos.errors import IllegalTransition
from pos.logging import get_logger
from pos.models import Order, OrderStatus, parse_choice

logger = get_logger(__name__)

STATUS_SEQUENCE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.IN_KITCHEN,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.COMPLETED,
)

KITCHEN_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.IN_KITCHEN, OrderStatus.READY})


class Actor(str, Enum):
    POS = "pos"
    KITCHEN = "kitchen"
    MANAGER = "manager"
    CUSTOMER = "customer"


# Target statuses each actor may move an order into.
ACTOR_TARGETS: dict[Actor, frozenset[OrderStatus]] = {
    Actor.POS: frozenset(OrderStatus),
    Actor.KITCHEN: frozenset({OrderStatus.IN_KITCHEN, OrderStatus.READY}),
    Actor.MANAGER: frozenset(OrderStatus),
    Actor.CUSTOMER: frozenset(),
}

# Customer-facing progress steps: status -> label.
TRACKING_STEPS: tuple[tuple[OrderStatus, str], ...] = (
    (OrderStatus.PENDING, "Order Received"),
    (OrderStatus.IN_KITCHEN, "Preparing"),
    (OrderStatus.READY, "Ready"),
    (OrderStatus.SERVED, "Served"),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_status(current: OrderStatus) -> OrderStatus | None:
    """The immediate next status in the normal flow, or None at the end."""
    if current.is_terminal:
        return None
    index = STATUS_SEQUENCE.index(current)
    return STATUS_SEQUENCE[index + 1]


def allowed_targets(current: OrderStatus) -> frozenset[OrderStatus]:
    """Statuses reachable from ``current`` through a normal transition."""
    if current.is_terminal:
        return frozenset()
    following = next_status(current)
    targets = {OrderStatus.CANCELLED}
    if following is not None:
        targets.add(following)
    return frozenset(targets)


def can_transition(current: OrderStatus, target: OrderStatus, actor: Actor = Actor.POS) -> bool:
    return target in allowed_targets(current) and target in ACTOR_TARGETS[actor]


def _apply(order: Order, target: OrderStatus, now: datetime | None) -> Order:
    changes: dict[str, object] = {"status": target}
    if target is OrderStatus.COMPLETED:
        changes["completed_at"] = now or _utc_now()
    return dataclasses.replace(order, **changes)


def transition(
    order: Order,
    target: OrderStatus | str,
    actor: Actor | str = Actor.POS,
    now: datetime | None = None,
) -> Order:
    """Move an order one step forward, or cancel it.

    Returns the updated copy; the caller persists it.

    Raises:
        IllegalTransition: the target skips steps, goes backward, leaves a
            terminal status, or is not permitted for the actor
    """
    target = parse_choice(OrderStatus, target, "order status")
    actor = parse_choice(Actor, actor, "actor")
    current = order.status

    if target not in allowed_targets(current):
        if current.is_terminal:
            detail = f"Order {order.order_number} is {current.value}; no further changes allowed"
        else:
            detail = f"Cannot move order {order.order_number} from {current.value} to {target.value}"
        logger.warning("Illegal transition: %s", detail)
        raise IllegalTransition(detail, current.value, target.value)

    if target not in ACTOR_TARGETS[actor]:
        detail = f"{actor.value} staff cannot move orders to {target.value}"
        logger.warning("Illegal transition: %s", detail)
        raise IllegalTransition(detail, current.value, target.value)

    logger.info("Order %s: %s -> %s (%s)", order.order_number, current.value, target.value, actor.value)
    return _apply(order, target, now)


def advance(order: Order, actor: Actor | str = Actor.POS, now: datetime | None = None) -> Order:
    """Move an order to its next status in the normal flow."""
    following = next_status(order.status)
    if following is None:
        raise IllegalTransition(
            f"Order {order.order_number} is {order.status.value}; no further changes allowed",
            order.status.value,
            order.status.value,
        )
    return transition(order, following, actor=actor, now=now)


def force_status(
    order: Order,
    target: OrderStatus | str,
    actor: Actor | str = Actor.MANAGER,
    now: datetime | None = None,
) -> Order:
    """Manual override: jump a non-terminal order to any other status.

    Only managers may override, and terminal orders stay terminal.
    """
    target = parse_choice(OrderStatus, target, "order status")
    actor = parse_choice(Actor, actor, "actor")
    current = order.status

    if actor is not Actor.MANAGER:
        raise IllegalTransition("Only a manager can override order status", current.value, target.value)
    if current.is_terminal:
        raise IllegalTransition(
            f"Order {order.order_number} is {current.value}; no further changes allowed",
            current.value,
            target.value,
        )
    if target is current:
        raise IllegalTransition(f"Order {order.order_number} is already {current.value}", current.value, target.value)

    logger.warning("Order %s: manual override %s -> %s", order.order_number, current.value, target.value)
    return _apply(order, target, now)


def wait_minutes(order: Order, now: datetime | None = None) -> int:
    """Whole minutes elapsed since the order was created."""
    elapsed = (now or _utc_now()) - order.created_at
    return max(0, int(elapsed.total_seconds() // 60))


@dataclass(frozen=True)
class KitchenTicket:
    order: Order
    wait_minutes: int
    urgent: bool


def kitchen_queue(
    orders: Iterable[Order],
    now: datetime | None = None,
    branch_id: str | None = None,
) -> list[KitchenTicket]:
    """Orders the kitchen still has to handle, oldest first."""
    now = now or _utc_now()
    active = [
        order
        for order in orders
        if order.status in KITCHEN_STATUSES and (branch_id is None or order.branch_id == branch_id)
    ]
    active.sort(key=lambda order: order.created_at)
    tickets = []
    for order in active:
        minutes = wait_minutes(order, now)
        tickets.append(KitchenTicket(order=order, wait_minutes=minutes, urgent=minutes > URGENT_WAIT_MINUTES))
    return tickets


def kitchen_stats(tickets: Iterable[KitchenTicket]) -> dict[str, int]:
    stats = {"pending": 0, "cooking": 0, "ready": 0}
    for ticket in tickets:
        if ticket.order.status is OrderStatus.PENDING:
            stats["pending"] += 1
        elif ticket.order.status is OrderStatus.IN_KITCHEN:
            stats["cooking"] += 1
        elif ticket.order.status is OrderStatus.READY:
            stats["ready"] += 1
    return stats


@dataclass(frozen=True)
class TrackingView:
    order: Order
    step_index: int
    steps: tuple[str, ...]
    eta_minutes: int | None
    eta_label: str

    @property
    def current_step(self) -> str | None:
        if 0 <= self.step_index < len(self.steps):
            return self.steps[self.step_index]
        return None


def tracking_step_index(status: OrderStatus) -> int:
    """Position on the four-step indicator; completed shows as served, cancelled is -1."""
    if status is OrderStatus.COMPLETED:
        return len(TRACKING_STEPS) - 1
    for index, (step_status, _) in enumerate(TRACKING_STEPS):
        if step_status is status:
            return index
    return -1


def estimated_remaining(order: Order, now: datetime | None = None) -> tuple[int | None, str]:
    """Minutes left against the fixed preparation estimate, with its display label."""
    if order.status in (OrderStatus.SERVED, OrderStatus.COMPLETED):
        return (None, "Completed")
    if order.status is OrderStatus.CANCELLED:
        return (None, "Cancelled")
    remaining = max(0, ESTIMATED_PREP_MINUTES - wait_minutes(order, now))
    if remaining > 0:
        return (remaining, f"{remaining} mins")
    return (0, "Soon")


def track(order: Order, now: datetime | None = None) -> TrackingView:
    eta_minutes, eta_label = estimated_remaining(order, now)
    return TrackingView(
        order=order,
        step_index=tracking_step_index(order.status),
        steps=tuple(label for _, label in TRACKING_STEPS),
        eta_minutes=eta_minutes,
        eta_label=eta_label,
    )
