from __future__ import annotations

import itertools
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pos.models import Order, OrderItem, OrderStatus, OrderType
from pos.persistence import SqliteOrderStore
from pos.pricing import compute_pricing
from pos.service import PosService

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)
TAX = Decimal("0.075")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def pos_caplog(caplog):
    """caplog wired to the ``pos`` logger, which does not propagate to the root."""
    pos_logger = logging.getLogger("pos")
    pos_logger.addHandler(caplog.handler)
    yield caplog
    pos_logger.removeHandler(caplog.handler)


@pytest.fixture
def store(tmp_path) -> SqliteOrderStore:
    order_store = SqliteOrderStore(tmp_path / "pos.db")
    order_store.bootstrap_schema()
    return order_store


@pytest.fixture
def service(store) -> PosService:
    return PosService(store, clock=lambda: NOW)


@pytest.fixture
def make_order():
    """Build committed orders directly, bypassing the draft."""
    counter = itertools.count(1)

    def factory(
        items: list[tuple[str, int, int]] | None = None,
        status: OrderStatus = OrderStatus.PENDING,
        order_type: OrderType = OrderType.TAKEAWAY,
        minutes_ago: int = 0,
        discount: Decimal = Decimal("0"),
        service_charge: Decimal = Decimal("0"),
        tax_rate: Decimal = TAX,
        branch_id: str = "1",
        **fields,
    ) -> Order:
        serial = next(counter)
        lines = tuple(
            OrderItem(
                item_id=f"line-{idx}",
                menu_item_id=name.lower(),
                name=name,
                price=Decimal(price),
                quantity=quantity,
            )
            for idx, (name, price, quantity) in enumerate(items or [("Ndole", 3500, 1)], start=1)
        )
        pricing = compute_pricing(lines, discount=discount, service_charge=service_charge, tax_rate=tax_rate)
        values = dict(
            order_id=f"order-{serial}",
            order_number=f"ORD-{100000 + serial}",
            order_type=order_type,
            status=status,
            items=lines,
            customer_name=f"Customer {serial}",
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            service_charge=pricing.service_charge,
            tax=pricing.tax,
            total=pricing.total,
            branch_id=branch_id,
            created_at=NOW - timedelta(minutes=minutes_ago),
        )
        values.update(fields)
        return Order(**values)

    return factory
