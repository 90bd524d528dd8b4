"""Cart of line items for an order being built."""

from __future__ import annotations

import itertools
import time
from collections.abc import Iterator
from decimal import Decimal

from pos.errors import ValidationError
from pos.logging import get_logger
from pos.models import MenuItem, OrderItem
from pos.pricing import compute_subtotal

logger = get_logger(__name__)

_line_sequence = itertools.count(1)


def _new_line_id(menu_item_id: str) -> str:
    # The sequence keeps ids distinct when the clock does not move between calls.
    return f"{menu_item_id}-{time.time_ns()}-{next(_line_sequence)}"


class Cart:
    """Insertion-ordered cart lines keyed by a cart-local line id.

    Line operations are total: unknown line ids are ignored and quantities
    clamp at zero, which removes the line. Adding an unknown variation of a
    dish raises ValidationError.
    """

    def __init__(self) -> None:
        self._lines: dict[str, OrderItem] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[OrderItem]:
        return iter(self._lines.values())

    def __contains__(self, line_id: object) -> bool:
        return line_id in self._lines

    @property
    def lines(self) -> list[OrderItem]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def subtotal(self) -> Decimal:
        return compute_subtotal(self._lines.values())

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def line(self, line_id: str) -> OrderItem | None:
        return self._lines.get(line_id)

    def find_line(self, menu_item_id: str, variation: str | None = None) -> OrderItem | None:
        for line in self._lines.values():
            if line.menu_item_id == menu_item_id and line.variation == variation:
                return line
        return None

    def add(self, menu_item: MenuItem, variation_id: str | None = None) -> OrderItem:
        """Add one unit of a catalog item, merging into an existing equivalent line."""
        variation = menu_item.variation(variation_id) if variation_id is not None else None
        if variation_id is not None and variation is None:
            raise ValidationError(f"Unknown variation {variation_id} for {menu_item.name}")
        variation_name = variation.name if variation is not None else None

        existing = self.find_line(menu_item.item_id, variation_name)
        if existing is not None:
            existing.quantity += 1
            logger.debug("Cart line %s quantity -> %d", existing.item_id, existing.quantity)
            return existing

        line = OrderItem(
            item_id=_new_line_id(menu_item.item_id),
            menu_item_id=menu_item.item_id,
            name=menu_item.name,
            price=variation.price if variation is not None else menu_item.price,
            quantity=1,
            variation=variation_name,
        )
        self._lines[line.item_id] = line
        logger.debug("Cart line %s added for %s", line.item_id, menu_item.item_id)
        return line

    def update_quantity(self, line_id: str, delta: int) -> OrderItem | None:
        """Change a line's quantity by ``delta``; returns None once the line is gone."""
        line = self._lines.get(line_id)
        if line is None:
            return None
        line.quantity = max(0, line.quantity + delta)
        if line.quantity == 0:
            del self._lines[line_id]
            logger.debug("Cart line %s removed at zero quantity", line_id)
            return None
        return line

    def set_note(self, line_id: str, note: str | None) -> None:
        line = self._lines.get(line_id)
        if line is None:
            return
        note = (note or "").strip()
        line.notes = note or None

    def remove(self, line_id: str) -> None:
        self._lines.pop(line_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def snapshot(self) -> tuple[OrderItem, ...]:
        """Independent copies of the lines, for committing into an order."""
        return tuple(
            OrderItem(
                item_id=line.item_id,
                menu_item_id=line.menu_item_id,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                variation=line.variation,
                notes=line.notes,
            )
            for line in self._lines.values()
        )
