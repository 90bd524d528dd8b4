"""Domain models for the point-of-sale core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TypeVar

from pos import money
from pos.errors import ValidationError

E = TypeVar("E", bound=Enum)


def parse_choice(enum_cls: type[E], value: object, label: str) -> E:
    """Coerce a raw value into ``enum_cls``, rejecting unknown values as a ValidationError."""
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown {label}: {value!r}") from exc


class OrderType(str, Enum):
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_KITCHEN = "in-kitchen"
    READY = "ready"
    SERVED = "served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    SPLIT = "split"


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class MenuVariation:
    """A priced variation of a menu item (size, portion...)."""

    variation_id: str
    name: str
    price: Decimal


@dataclass(frozen=True)
class MenuItem:
    """A catalog entry as supplied by the menu."""

    item_id: str
    name: str
    category: str
    price: Decimal
    available: bool = True
    branch_id: str | None = None
    variations: tuple[MenuVariation, ...] = ()

    def variation(self, variation_id: str) -> MenuVariation | None:
        for variation in self.variations:
            if variation.variation_id == variation_id:
                return variation
        return None


@dataclass(frozen=True)
class Table:
    """A dine-in table from the floor inventory."""

    table_id: str
    number: int
    seats: int
    branch_id: str
    status: str = "available"


@dataclass
class OrderItem:
    """One line of an order.

    Mutable only while it sits in a cart; committed orders hold their own copies.
    """

    item_id: str
    menu_item_id: str
    name: str
    price: Decimal
    quantity: int = 1
    variation: str | None = None
    notes: str | None = None

    @property
    def line_total(self) -> Decimal:
        return money.line_total(self.price, self.quantity)


@dataclass(frozen=True)
class PricingBreakdown:
    """Derived totals of a set of items."""

    subtotal: Decimal
    discount: Decimal
    service_charge: Decimal
    tax: Decimal
    total: Decimal

    @property
    def taxable_base(self) -> Decimal:
        return self.subtotal - self.discount + self.service_charge


@dataclass(frozen=True)
class SubPayment:
    method: PaymentMethod
    amount: Decimal


@dataclass(frozen=True)
class PaymentRecord:
    """A confirmed payment, produced by the payment reconciler."""

    method: PaymentMethod
    amount_paid: Decimal
    change: Decimal = Decimal("0")
    terminal: str | None = None
    provider: str | None = None
    reference: str | None = None
    sub_payments: tuple[SubPayment, ...] = ()


@dataclass(frozen=True)
class Order:
    """A committed order. Changed only through status transitions."""

    order_id: str
    order_number: str
    order_type: OrderType
    status: OrderStatus
    items: tuple[OrderItem, ...]
    customer_name: str
    subtotal: Decimal
    discount: Decimal
    service_charge: Decimal
    tax: Decimal
    total: Decimal
    branch_id: str
    created_at: datetime
    customer_phone: str | None = None
    table_id: str | None = None
    delivery_address: str | None = None
    completed_at: datetime | None = None
    payment_method: PaymentMethod | None = None
    payment_reference: str | None = None
    notes: str | None = None
    version: int = 1

    @property
    def pricing(self) -> PricingBreakdown:
        return PricingBreakdown(
            subtotal=self.subtotal,
            discount=self.discount,
            service_charge=self.service_charge,
            tax=self.tax,
            total=self.total,
        )


@dataclass(frozen=True)
class SplitBill:
    """One sub-bill derived from an order (or a merged set of orders)."""

    split_id: str
    items: tuple[OrderItem, ...]
    subtotal: Decimal
    discount: Decimal
    service_charge: Decimal
    tax: Decimal
    total: Decimal
    source_order_ids: tuple[str, ...] = field(default_factory=tuple)
