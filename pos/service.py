"""Public operation surface of the POS core.

Every operation returns a Result; taxonomy errors raised by the components
never cross this boundary. The store is written only after every check has
passed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pos import listing, status
from pos.draft import OrderDraft, new_order_number
from pos.errors import Result
from pos.logging import get_logger
from pos.models import DiscountKind, Order, OrderStatus, PaymentMethod, PaymentRecord, SplitBill, parse_choice
from pos.money import Numeric
from pos.payment import reconcile
from pos.persistence import SqliteOrderStore
from pos.splitting import SharedItemPolicy, SplitWorkspace, custom_split, equal_split
from pos.status import Actor, KitchenTicket, TrackingView

logger = get_logger(__name__)


@dataclass(frozen=True)
class Receipt:
    """A committed checkout: the stored order and the payment that settled it."""

    order: Order
    payment: PaymentRecord

    @property
    def change(self) -> Decimal:
        return self.payment.change


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PosService:
    def __init__(self, store: SqliteOrderStore, clock: Callable[[], datetime] = _utc_now) -> None:
        self.store = store
        self.clock = clock

    # Draft operations

    def apply_discount(self, draft: OrderDraft, kind: DiscountKind | str, value: Numeric, reason: str = "") -> Result[Decimal]:
        return Result.capture(draft.apply_discount, kind, value, reason)

    def toggle_service_charge(self, draft: OrderDraft) -> Result[Decimal]:
        return Result.capture(draft.toggle_service_charge)

    # Commit

    def checkout(
        self,
        draft: OrderDraft,
        method: PaymentMethod | str,
        send_to_kitchen: bool = False,
        **payment_details: Any,
    ) -> Result[Receipt]:
        """Take payment for the draft and commit it.

        The order is stored as completed, or as pending when it still has to
        go through the kitchen.
        """
        return Result.capture(self._checkout, draft, method, send_to_kitchen, payment_details)

    def _checkout(
        self,
        draft: OrderDraft,
        method: PaymentMethod | str,
        send_to_kitchen: bool,
        payment_details: dict[str, Any],
    ) -> Receipt:
        draft.validate(require_customer_name=False)
        payment = reconcile(draft.pricing().total, method, **payment_details)
        target = OrderStatus.PENDING if send_to_kitchen else OrderStatus.COMPLETED
        order = draft.build_order(
            new_order_number(self.store.order_number_taken),
            status=target,
            payment=payment,
            now=self.clock(),
        )
        self.store.add_order(order, payment)
        draft.clear()
        return Receipt(order=order, payment=payment)

    def place_order(self, draft: OrderDraft) -> Result[Order]:
        """Commit a kitchen-bound order with no payment taken yet."""
        return Result.capture(self._place_order, draft)

    def _place_order(self, draft: OrderDraft) -> Order:
        draft.validate(require_customer_name=True)
        order = draft.build_order(
            new_order_number(self.store.order_number_taken),
            status=OrderStatus.PENDING,
            now=self.clock(),
        )
        self.store.add_order(order)
        draft.clear()
        return order

    # Lifecycle

    def _persist_status(self, before: Order, after: Order, expected_version: int | None) -> Order:
        return self.store.update_order(
            before.order_id,
            {"status": after.status, "completed_at": after.completed_at},
            expected_version=before.version if expected_version is None else expected_version,
        )

    def transition(
        self,
        order_id: str,
        target: OrderStatus | str,
        actor: Actor | str = Actor.POS,
        expected_version: int | None = None,
    ) -> Result[Order]:
        def run() -> Order:
            order = self.store.get_order(order_id)
            updated = status.transition(order, target, actor=actor, now=self.clock())
            return self._persist_status(order, updated, expected_version)

        return Result.capture(run)

    def advance(self, order_id: str, actor: Actor | str = Actor.POS, expected_version: int | None = None) -> Result[Order]:
        def run() -> Order:
            order = self.store.get_order(order_id)
            updated = status.advance(order, actor=actor, now=self.clock())
            return self._persist_status(order, updated, expected_version)

        return Result.capture(run)

    def cancel(self, order_id: str, actor: Actor | str = Actor.POS, expected_version: int | None = None) -> Result[Order]:
        return self.transition(order_id, OrderStatus.CANCELLED, actor=actor, expected_version=expected_version)

    def force_status(
        self,
        order_id: str,
        target: OrderStatus | str,
        actor: Actor | str = Actor.MANAGER,
        expected_version: int | None = None,
    ) -> Result[Order]:
        def run() -> Order:
            order = self.store.get_order(order_id)
            updated = status.force_status(order, target, actor=actor, now=self.clock())
            return self._persist_status(order, updated, expected_version)

        return Result.capture(run)

    # Splitting

    def _workspace(self, order_ids: Sequence[str]) -> SplitWorkspace:
        return SplitWorkspace.from_orders([self.store.get_order(order_id) for order_id in order_ids])

    def split_equal(self, order_ids: Sequence[str], count: int) -> Result[list[SplitBill]]:
        return Result.capture(lambda: equal_split(self._workspace(order_ids), count))

    def split_custom(
        self,
        order_ids: Sequence[str],
        assignments: Mapping[str, Iterable[int]],
        policy: SharedItemPolicy | str = SharedItemPolicy.FRACTIONAL,
    ) -> Result[list[SplitBill]]:
        def run() -> list[SplitBill]:
            chosen = parse_choice(SharedItemPolicy, policy, "shared item policy")
            return custom_split(self._workspace(order_ids), assignments, chosen)

        return Result.capture(run)

    # Views

    def kitchen_queue(self, branch_id: str | None = None) -> Result[list[KitchenTicket]]:
        return Result.capture(
            lambda: status.kitchen_queue(
                self.store.list_orders(branch_id=branch_id, statuses=status.KITCHEN_STATUSES),
                now=self.clock(),
            )
        )

    def track_order(self, order_number: str) -> Result[TrackingView]:
        return Result.capture(lambda: status.track(self.store.find_by_number(order_number), now=self.clock()))

    def list_orders(
        self,
        branch_id: str | None = None,
        status: OrderStatus | str = "all",
        order_type: str = "all",
        search: str = "",
    ) -> Result[list[Order]]:
        return Result.capture(
            lambda: listing.filter_orders(
                self.store.list_orders(),
                branch_id=branch_id,
                status=status,
                order_type=order_type,
                search=search,
            )
        )

    def order_stats(self, branch_id: str | None = None) -> Result[dict[str, int | Decimal]]:
        return Result.capture(lambda: listing.order_stats(self.store.list_orders(branch_id=branch_id)))
