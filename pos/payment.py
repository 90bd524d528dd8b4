"""Payment reconciliation for a single checkout attempt.

An attempt moves ``idle -> validating -> confirmed | rejected``. A rejected
attempt may be retried with corrected input; a confirmed one is final. The
reconciler only produces a PaymentRecord, committing the order is the
caller's job.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum

from pos.config import CARD_TERMINALS, MOBILE_PROVIDERS, MONEY_TOLERANCE
from pos.errors import (
    InsufficientPayment,
    MissingPaymentDetail,
    PosError,
    SplitMismatch,
    ValidationError,
)
from pos.logging import get_logger
from pos.models import PaymentMethod, PaymentRecord, SubPayment
from pos.money import ZERO, Numeric, format_money, parse_amount, to_decimal

logger = get_logger(__name__)


class AttemptState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


def coerce_sub_payments(entries: Iterable[SubPayment | tuple[str, Numeric]]) -> tuple[SubPayment, ...]:
    """Normalize ``(method, amount)`` pairs into SubPayment records.

    Blank amounts count as zero, the way an empty split row does.
    """
    result: list[SubPayment] = []
    for entry in entries:
        if isinstance(entry, SubPayment):
            method, raw_amount = entry.method, entry.amount
        else:
            method, raw_amount = entry
        try:
            method = PaymentMethod(method)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method: {method!r}") from exc
        if method is PaymentMethod.SPLIT:
            raise ValidationError("A split payment cannot contain another split")

        if isinstance(raw_amount, str) and not raw_amount.strip():
            amount = ZERO
        else:
            parsed = parse_amount(raw_amount)
            if parsed is None:
                raise ValidationError(f"Split amount must be a number, got {raw_amount!r}")
            amount = parsed
        if amount < 0:
            raise ValidationError("Split amounts cannot be negative")
        result.append(SubPayment(method=method, amount=amount))
    return tuple(result)


def split_remaining(total: Numeric, entries: Iterable[SubPayment | tuple[str, Numeric]]) -> Decimal:
    """Signed amount still owed (negative when overpaid), for live display."""
    sub_payments = coerce_sub_payments(entries)
    return to_decimal(total) - sum((p.amount for p in sub_payments), ZERO)


class PaymentAttempt:
    """Validate one proposed payment against the amount due."""

    def __init__(self, total: Numeric) -> None:
        self.total = to_decimal(total)
        self.state = AttemptState.IDLE
        self.record: PaymentRecord | None = None
        self.last_error: PosError | None = None

    def _begin(self) -> None:
        if self.state is AttemptState.CONFIRMED:
            raise ValidationError("Payment already confirmed")
        self.state = AttemptState.VALIDATING

    def _confirm(self, record: PaymentRecord) -> PaymentRecord:
        self.state = AttemptState.CONFIRMED
        self.record = record
        self.last_error = None
        logger.info("Payment confirmed: %s %s", record.method.value, format_money(record.amount_paid))
        return record

    def _reject(self, error: PosError) -> PosError:
        self.state = AttemptState.REJECTED
        self.last_error = error
        logger.warning("Payment rejected (%s): %s", error.kind, error.detail)
        return error

    def pay_cash(self, tendered: Numeric | None) -> PaymentRecord:
        self._begin()
        amount = parse_amount(tendered)
        if amount is None or amount < self.total:
            raise self._reject(InsufficientPayment("Insufficient cash amount"))
        return self._confirm(
            PaymentRecord(method=PaymentMethod.CASH, amount_paid=amount, change=amount - self.total)
        )

    def pay_card(self, terminal: str | None) -> PaymentRecord:
        self._begin()
        terminal = (terminal or "").strip()
        if not terminal:
            raise self._reject(MissingPaymentDetail("Please select a card terminal"))
        if terminal not in CARD_TERMINALS:
            raise self._reject(MissingPaymentDetail(f"Unknown card terminal: {terminal}"))
        return self._confirm(PaymentRecord(method=PaymentMethod.CARD, amount_paid=self.total, terminal=terminal))

    def pay_mobile(self, provider: str | None, reference: str | None) -> PaymentRecord:
        self._begin()
        provider = (provider or "").strip()
        reference = (reference or "").strip()
        if not provider:
            raise self._reject(MissingPaymentDetail("Please select mobile money provider"))
        if provider not in MOBILE_PROVIDERS:
            raise self._reject(MissingPaymentDetail(f"Unknown mobile money provider: {provider}"))
        if not reference:
            raise self._reject(MissingPaymentDetail("Please enter transaction reference"))
        return self._confirm(
            PaymentRecord(
                method=PaymentMethod.MOBILE,
                amount_paid=self.total,
                provider=provider,
                reference=reference,
            )
        )

    def pay_split(self, entries: Iterable[SubPayment | tuple[str, Numeric]]) -> PaymentRecord:
        self._begin()
        try:
            sub_payments = coerce_sub_payments(entries)
        except ValidationError as exc:
            raise self._reject(exc) from exc
        remaining = self.total - sum((p.amount for p in sub_payments), ZERO)
        if abs(remaining) > MONEY_TOLERANCE:
            raise self._reject(
                SplitMismatch(
                    f"Split payments must total the exact amount (remaining {remaining})",
                    remaining=remaining,
                )
            )
        return self._confirm(
            PaymentRecord(method=PaymentMethod.SPLIT, amount_paid=self.total, sub_payments=sub_payments)
        )

    def pay(self, method: PaymentMethod | str, **details: object) -> PaymentRecord:
        """Dispatch on payment method.

        Details: ``tendered`` (cash), ``terminal`` (card), ``provider`` and
        ``reference`` (mobile), ``sub_payments`` (split).
        """
        try:
            method = PaymentMethod(method)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method: {method!r}") from exc

        if method is PaymentMethod.CASH:
            return self.pay_cash(details.get("tendered"))  # type: ignore[arg-type]
        if method is PaymentMethod.CARD:
            return self.pay_card(details.get("terminal"))  # type: ignore[arg-type]
        if method is PaymentMethod.MOBILE:
            return self.pay_mobile(details.get("provider"), details.get("reference"))  # type: ignore[arg-type]
        return self.pay_split(details.get("sub_payments") or ())  # type: ignore[arg-type]


def reconcile(total: Numeric, method: PaymentMethod | str, **details: object) -> PaymentRecord:
    """Validate a payment in one call; raises the taxonomy error on rejection."""
    return PaymentAttempt(total).pay(method, **details)
