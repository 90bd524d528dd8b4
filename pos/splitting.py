"""Bill splitting: equal division and custom item assignment.

Both algorithms run on a SplitWorkspace, which pools the items of one or
more committed orders and sums their monetary components.

Equal split divides money uniformly and chunks items for display only; the
items shown on a split say nothing about its amount. Custom split prices each
bucket from its own items and allocates discount, service charge and tax in
proportion to the bucket's share of the pooled subtotal.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pos.config import SPLIT_COUNT_MAX, SPLIT_COUNT_MIN
from pos.errors import InvalidSplitCount, UnassignedItems, ValidationError
from pos.logging import get_logger
from pos.models import Order, OrderItem, SplitBill
from pos.money import ZERO

logger = get_logger(__name__)


class SharedItemPolicy(str, Enum):
    """How a line assigned to several buckets is charged."""

    FRACTIONAL = "fractional"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class PooledItem:
    """An order line tagged with the order it came from."""

    item: OrderItem
    order_id: str
    order_number: str

    @property
    def key(self) -> str:
        return f"{self.order_id}:{self.item.item_id}"


@dataclass(frozen=True)
class SplitWorkspace:
    items: tuple[PooledItem, ...]
    subtotal: Decimal
    discount: Decimal
    service_charge: Decimal
    tax: Decimal
    total: Decimal
    order_ids: tuple[str, ...]

    @classmethod
    def from_orders(cls, orders: Sequence[Order]) -> "SplitWorkspace":
        if not orders:
            raise ValidationError("Select at least one order to split")
        items = tuple(
            PooledItem(item=item, order_id=order.order_id, order_number=order.order_number)
            for order in orders
            for item in order.items
        )
        return cls(
            items=items,
            subtotal=sum((o.subtotal for o in orders), ZERO),
            discount=sum((o.discount for o in orders), ZERO),
            service_charge=sum((o.service_charge for o in orders), ZERO),
            tax=sum((o.tax for o in orders), ZERO),
            total=sum((o.total for o in orders), ZERO),
            order_ids=tuple(o.order_id for o in orders),
        )

    @classmethod
    def from_order(cls, order: Order) -> "SplitWorkspace":
        return cls.from_orders([order])

    def resolve_key(self, key: str) -> PooledItem:
        """Find a pooled item by its full key, or by bare item id when unambiguous."""
        for pooled in self.items:
            if pooled.key == key:
                return pooled
        matches = [pooled for pooled in self.items if pooled.item.item_id == key]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            raise ValidationError(f"Unknown item in split assignment: {key}")
        raise ValidationError(f"Item id {key} is ambiguous across merged orders; use order_id:item_id")


def validate_split_count(count: object) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidSplitCount(f"Number of splits must be a whole number, got {count!r}")
    if not SPLIT_COUNT_MIN <= count <= SPLIT_COUNT_MAX:
        raise InvalidSplitCount(
            f"Please enter a valid number of splits ({SPLIT_COUNT_MIN}-{SPLIT_COUNT_MAX})"
        )
    return count


def equal_split(workspace: SplitWorkspace, count: int) -> list[SplitBill]:
    """Split the bill into ``count`` identical amounts."""
    count = validate_split_count(count)
    per_chunk = math.ceil(len(workspace.items) / count)

    splits: list[SplitBill] = []
    for index in range(count):
        chunk = workspace.items[index * per_chunk : (index + 1) * per_chunk]
        splits.append(
            SplitBill(
                split_id=f"split-{index + 1}",
                items=tuple(pooled.item for pooled in chunk),
                subtotal=workspace.subtotal / count,
                discount=workspace.discount / count,
                service_charge=workspace.service_charge / count,
                tax=workspace.tax / count,
                total=workspace.total / count,
                source_order_ids=workspace.order_ids,
            )
        )
    logger.info("Split %s into %d equal parts", ",".join(workspace.order_ids), count)
    return splits


def _normalize_assignments(
    workspace: SplitWorkspace,
    assignments: Mapping[str, Iterable[int]],
) -> dict[str, list[int]]:
    buckets_by_key: dict[str, list[int]] = {}
    for raw_key, raw_buckets in assignments.items():
        pooled = workspace.resolve_key(raw_key)
        buckets = buckets_by_key.setdefault(pooled.key, [])
        for bucket in raw_buckets:
            if isinstance(bucket, bool) or not isinstance(bucket, int) or bucket < 0:
                raise ValidationError(f"Invalid split index {bucket!r} for {raw_key}")
            if bucket not in buckets:
                buckets.append(bucket)
    return buckets_by_key


def custom_split(
    workspace: SplitWorkspace,
    assignments: Mapping[str, Iterable[int]],
    policy: SharedItemPolicy = SharedItemPolicy.FRACTIONAL,
) -> list[SplitBill]:
    """Split by explicit assignment of each item to zero-based bucket indices.

    The number of splits is one more than the highest bucket index used.
    """
    buckets_by_key = _normalize_assignments(workspace, assignments)

    unassigned = [pooled.key for pooled in workspace.items if not buckets_by_key.get(pooled.key)]
    if unassigned:
        raise UnassignedItems("Please assign all items to at least one split", unassigned)

    bucket_count = max(max(buckets) for buckets in buckets_by_key.values()) + 1 if buckets_by_key else 0

    splits: list[SplitBill] = []
    for index in range(bucket_count):
        bucket_items: list[OrderItem] = []
        split_subtotal = ZERO
        for pooled in workspace.items:
            buckets = buckets_by_key[pooled.key]
            if index not in buckets:
                continue
            bucket_items.append(pooled.item)
            if policy is SharedItemPolicy.FRACTIONAL:
                split_subtotal += pooled.item.line_total / len(buckets)
            else:
                split_subtotal += pooled.item.line_total

        share = split_subtotal / workspace.subtotal if workspace.subtotal else ZERO
        split_discount = share * workspace.discount
        split_service = share * workspace.service_charge
        split_tax = share * workspace.tax
        splits.append(
            SplitBill(
                split_id=f"split-{index + 1}",
                items=tuple(bucket_items),
                subtotal=split_subtotal,
                discount=split_discount,
                service_charge=split_service,
                tax=split_tax,
                total=split_subtotal - split_discount + split_service + split_tax,
                source_order_ids=workspace.order_ids,
            )
        )

    logger.info(
        "Split %s into %d custom parts (%s)", ",".join(workspace.order_ids), bucket_count, policy.value
    )
    return splits
