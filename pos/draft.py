"""Order draft: the one mutable aggregate behind checkout and order intake.

The draft owns the cart, the customer and fulfillment fields, the discount
and the service charge. Prices are always derived from the current state by
``pricing()``; nothing is cached.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from pos import data
from pos.cart import Cart
from pos.config import DEFAULT_BRANCH_ID, TAX_RATE, WALK_IN_CUSTOMER_NAME
from pos.errors import ValidationError
from pos.logging import get_logger
from pos.models import (
    DiscountKind,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    PaymentRecord,
    PricingBreakdown,
    parse_choice,
)
from pos.money import ZERO, Numeric, to_decimal
from pos.pricing import apply_discount, compute_pricing, toggle_service_charge

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppliedDiscount:
    kind: DiscountKind
    value: Decimal
    reason: str = ""


def new_order_number(is_taken: Callable[[str], bool] = lambda _: False) -> str:
    """``ORD-`` plus six digits from the millisecond clock, bumped until unused."""
    serial = (time.time_ns() // 1_000_000) % 1_000_000
    for _ in range(1_000_000):
        number = f"ORD-{serial:06d}"
        if not is_taken(number):
            return number
        serial = (serial + 1) % 1_000_000
    raise ValidationError("No order numbers left")


class OrderDraft:
    """Builder for a new order."""

    def __init__(
        self,
        order_type: OrderType | str = OrderType.TAKEAWAY,
        branch_id: str = DEFAULT_BRANCH_ID,
        tax_rate: Decimal = TAX_RATE,
    ) -> None:
        self.order_type = parse_choice(OrderType, order_type, "order type")
        self.branch_id = branch_id
        self.tax_rate = tax_rate
        self.cart = Cart()
        self.customer_name = ""
        self.customer_phone = ""
        self.table_id: str | None = None
        self.delivery_address = ""
        self.notes = ""
        self.discount: AppliedDiscount | None = None
        self._service_charge_on = False

    # Cart

    def add_item(self, menu_item: MenuItem, variation_id: str | None = None) -> OrderItem:
        return self.cart.add(menu_item, variation_id)

    def add_item_by_id(self, menu_item_id: str, variation_id: str | None = None) -> OrderItem:
        menu_item = data.menu_item(menu_item_id)
        if menu_item is None:
            raise ValidationError(f"Unknown menu item: {menu_item_id}")
        if not menu_item.available:
            raise ValidationError(f"{menu_item.name} is not available")
        if menu_item.branch_id is not None and menu_item.branch_id != self.branch_id:
            raise ValidationError(f"{menu_item.name} is not served at this branch")
        return self.add_item(menu_item, variation_id)

    def update_quantity(self, line_id: str, delta: int) -> OrderItem | None:
        return self.cart.update_quantity(line_id, delta)

    def remove_line(self, line_id: str) -> None:
        self.cart.remove(line_id)

    def set_line_note(self, line_id: str, note: str | None) -> None:
        self.cart.set_note(line_id, note)

    def clear(self) -> None:
        """Empty the cart and drop discount and service charge with it."""
        self.cart.clear()
        self.discount = None
        self._service_charge_on = False

    # Customer and fulfillment

    def set_customer(self, name: str, phone: str = "") -> None:
        self.customer_name = name.strip()
        self.customer_phone = phone.strip()

    def set_order_type(self, order_type: OrderType | str) -> None:
        self.order_type = parse_choice(OrderType, order_type, "order type")

    def set_table(self, table_id: str | None) -> None:
        self.table_id = table_id or None

    def set_delivery_address(self, address: str) -> None:
        self.delivery_address = address.strip()

    # Discount and service charge

    def apply_discount(self, kind: DiscountKind | str, value: Numeric, reason: str = "") -> Decimal:
        """Validate and apply a discount; a rejected request leaves the old one in place."""
        amount = apply_discount(self.cart.subtotal, kind, value)
        self.discount = AppliedDiscount(kind=DiscountKind(kind), value=to_decimal(value), reason=reason)
        logger.debug("Discount %s %s applied: %s", self.discount.kind.value, self.discount.value, amount)
        return amount

    def remove_discount(self) -> None:
        self.discount = None

    def toggle_service_charge(self) -> Decimal:
        """Flip the service charge; while on it tracks the current subtotal."""
        self._service_charge_on = not self._service_charge_on
        return self.service_charge

    @property
    def discount_amount(self) -> Decimal:
        if self.discount is None:
            return ZERO
        subtotal = self.cart.subtotal
        if self.discount.kind is DiscountKind.PERCENTAGE:
            return min(subtotal * self.discount.value / 100, subtotal)
        return min(self.discount.value, subtotal)

    @property
    def service_charge(self) -> Decimal:
        if not self._service_charge_on:
            return ZERO
        return toggle_service_charge(ZERO, self.cart.subtotal)

    def pricing(self) -> PricingBreakdown:
        return compute_pricing(
            self.cart,
            discount=self.discount_amount,
            service_charge=self.service_charge,
            tax_rate=self.tax_rate,
        )

    # Commit

    def validate(self, require_customer_name: bool = True) -> None:
        """Check the draft can become an order.

        Raises:
            ValidationError: naming the first missing or invalid field
        """
        if self.cart.is_empty:
            raise ValidationError("Cart is empty")
        if require_customer_name and not self.customer_name:
            raise ValidationError("Customer name is required")
        if self.order_type is OrderType.DINE_IN:
            if not self.table_id:
                raise ValidationError("Please select a table")
            free_tables = {entry.table_id for entry in data.available_tables(self.branch_id)}
            if self.table_id not in free_tables:
                raise ValidationError(f"Table {self.table_id} is not available")
        if self.order_type is OrderType.DELIVERY and not self.delivery_address:
            raise ValidationError("Delivery address is required")

    def build_order(
        self,
        order_number: str,
        status: OrderStatus = OrderStatus.PENDING,
        payment: PaymentRecord | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Freeze the draft into an Order; validation is the caller's step."""
        now = now or datetime.now(timezone.utc)
        pricing = self.pricing()
        reference = None
        if payment is not None:
            reference = payment.reference or payment.terminal
        return Order(
            order_id=uuid.uuid4().hex,
            order_number=order_number,
            order_type=self.order_type,
            status=status,
            items=self.cart.snapshot(),
            customer_name=self.customer_name or WALK_IN_CUSTOMER_NAME,
            customer_phone=self.customer_phone or None,
            table_id=self.table_id if self.order_type is OrderType.DINE_IN else None,
            delivery_address=self.delivery_address if self.order_type is OrderType.DELIVERY else None,
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            service_charge=pricing.service_charge,
            tax=pricing.tax,
            total=pricing.total,
            branch_id=self.branch_id,
            created_at=now,
            completed_at=now if status is OrderStatus.COMPLETED else None,
            payment_method=payment.method if payment is not None else None,
            payment_reference=reference,
            notes=self.notes.strip() or None,
        )
