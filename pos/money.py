"""Decimal money helpers.

Amounts are carried as unrounded ``Decimal`` values through every computation
and only rounded for display. FCFA has no minor unit in circulation, so
display rounding is to whole units while comparisons use a 0.01 tolerance.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from pos.config import CURRENCY_LABEL, MONEY_TOLERANCE

Numeric = Union[Decimal, str, int, float]

ZERO = Decimal("0")


def to_decimal(amount: Numeric) -> Decimal:
    """Convert an amount to Decimal, going through ``str`` for floats.

    Raises:
        InvalidOperation: if the value is not a finite number
    """
    if isinstance(amount, bool):
        raise InvalidOperation(f"not a money amount: {amount!r}")
    if isinstance(amount, float):
        amount = str(amount)
    if isinstance(amount, str):
        amount = amount.strip().replace(",", "")
    value = Decimal(amount)
    if not value.is_finite():
        raise InvalidOperation(f"not a finite amount: {amount!r}")
    return value


def parse_amount(raw: Numeric | None) -> Decimal | None:
    """Parse user-entered money, returning None for blank or non-numeric input."""
    if raw is None:
        return None
    if isinstance(raw, str) and not raw.strip():
        return None
    try:
        return to_decimal(raw)
    except (InvalidOperation, ValueError, TypeError):
        return None


def round_display(amount: Numeric) -> Decimal:
    """Round to whole currency units for display."""
    return to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def format_money(amount: Numeric) -> str:
    """Format an amount as ``12,345 FCFA``."""
    return f"{round_display(amount):,} {CURRENCY_LABEL}"


def within_tolerance(left: Numeric, right: Numeric, tolerance: Decimal = MONEY_TOLERANCE) -> bool:
    """Whether two amounts are equal within the configured tolerance."""
    return abs(to_decimal(left) - to_decimal(right)) <= tolerance


def line_total(price: Decimal, quantity: int) -> Decimal:
    return price * quantity
