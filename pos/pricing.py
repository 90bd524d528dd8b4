"""Pricing primitives plus the discount and service charge policy.

Formula, in order:

    subtotal  = sum(price * quantity)
    base      = subtotal - discount + service_charge
    tax       = base * tax_rate
    total     = base + tax

Nothing is rounded here; rounding happens only when an amount is displayed.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation

from pos.config import SERVICE_CHARGE_RATE, TAX_RATE
from pos.errors import InvalidDiscount
from pos.models import DiscountKind, OrderItem, PricingBreakdown
from pos.money import ZERO, Numeric, to_decimal


def compute_subtotal(items: Iterable[OrderItem]) -> Decimal:
    return sum((item.line_total for item in items), ZERO)


def compute_pricing(
    items: Iterable[OrderItem],
    discount: Numeric = ZERO,
    service_charge: Numeric = ZERO,
    tax_rate: Numeric = TAX_RATE,
) -> PricingBreakdown:
    """Price a set of items.

    ``discount`` is expected to be already clamped to the subtotal by the caller.
    """
    subtotal = compute_subtotal(items)
    discount_amount = to_decimal(discount)
    service_amount = to_decimal(service_charge)
    base = subtotal - discount_amount + service_amount
    tax = base * to_decimal(tax_rate)
    return PricingBreakdown(
        subtotal=subtotal,
        discount=discount_amount,
        service_charge=service_amount,
        tax=tax,
        total=base + tax,
    )


def apply_discount(subtotal: Numeric, kind: DiscountKind | str, value: Numeric) -> Decimal:
    """Return the discount amount for a percentage or fixed discount request.

    Raises:
        InvalidDiscount: value is non-numeric or negative, or the percentage
            would discount more than the subtotal
    """
    try:
        kind = DiscountKind(kind)
    except ValueError as exc:
        raise InvalidDiscount(f"Unknown discount type: {kind!r}") from exc

    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidDiscount(f"Discount value must be a number, got {value!r}") from exc
    if amount < 0:
        raise InvalidDiscount("Discount value cannot be negative")

    base = to_decimal(subtotal)
    if kind is DiscountKind.PERCENTAGE:
        discount = base * amount / 100
        if discount > base:
            raise InvalidDiscount("Discount cannot exceed subtotal")
        return discount
    return min(amount, base)


def toggle_service_charge(current: Numeric, subtotal: Numeric, rate: Numeric = SERVICE_CHARGE_RATE) -> Decimal:
    """Switch the flat-rate service charge on or off.

    An applied charge is cleared; otherwise the charge becomes ``rate`` of the subtotal.
    """
    if to_decimal(current) > 0:
        return ZERO
    return to_decimal(subtotal) * to_decimal(rate)
