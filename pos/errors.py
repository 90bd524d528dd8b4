"""Error taxonomy and the result wrapper returned by public operations."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class PosError(ValueError):
    """A recoverable, user-correctable failure of a core operation."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(PosError):
    """A required field is missing or malformed."""


class InsufficientPayment(PosError):
    """Cash tendered is below the amount due."""


class MissingPaymentDetail(PosError):
    """Card terminal, mobile provider or mobile reference was not supplied."""


class SplitMismatch(PosError):
    """Split sub-payments do not add up to the amount due."""

    def __init__(self, detail: str, remaining: Decimal) -> None:
        super().__init__(detail)
        # Positive means still owed, negative means overpaid.
        self.remaining = remaining


class InvalidDiscount(PosError):
    """Discount value is non-numeric, negative or larger than the subtotal."""


class InvalidSplitCount(PosError):
    """Equal split requested with a count outside the allowed range."""


class UnassignedItems(PosError):
    """Custom split left one or more items without a bucket."""

    def __init__(self, detail: str, item_keys: Iterable[str]) -> None:
        super().__init__(detail)
        self.item_keys = tuple(item_keys)


class IllegalTransition(PosError):
    """Status change not allowed from the current status or for the actor."""

    def __init__(self, detail: str, current: str, target: str) -> None:
        super().__init__(detail)
        self.current = current
        self.target = target


class OrderNotFound(PosError):
    """No order with the given id or number exists in the store."""


class StaleOrder(PosError):
    """The order changed in the store since the caller last read it."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a public operation: a value on success, a PosError on failure."""

    value: T | None = None
    error: PosError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> str | None:
        return self.error.kind if self.error is not None else None

    @property
    def detail(self) -> str | None:
        return self.error.detail if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PosError) -> "Result[T]":
        return cls(error=error)

    @classmethod
    def capture(cls, func: Callable[..., T], *args: Any, **kwargs: Any) -> "Result[T]":
        """Run ``func`` and fold any PosError it raises into a failed result."""
        try:
            return cls(value=func(*args, **kwargs))
        except PosError as exc:
            return cls(error=exc)
