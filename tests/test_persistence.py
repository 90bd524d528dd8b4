from __future__ import annotations

import dataclasses
from decimal import Decimal

import pytest

from pos.errors import OrderNotFound, StaleOrder, ValidationError
from pos.models import OrderStatus, OrderType, PaymentMethod, PaymentRecord, SubPayment


def test_saved_order_reads_back_unchanged(store, make_order) -> None:
    order = make_order(
        items=[("Poisson Braise", 7000, 1), ("Miondo", 500, 3)],
        order_type=OrderType.DELIVERY,
        delivery_address="Rue Joss, Bonanjo",
        customer_phone="699123456",
        discount=Decimal("750"),
    )
    store.add_order(order)

    loaded = store.get_order(order.order_id)

    assert loaded == order
    assert loaded.tax == order.tax
    assert loaded.items[1].quantity == 3


def test_bootstrap_schema_is_idempotent(store) -> None:
    store.bootstrap_schema()
    store.bootstrap_schema()
    assert store.list_orders() == []


def test_find_by_number_ignores_case(store, make_order) -> None:
    order = store.add_order(make_order())
    assert store.find_by_number(order.order_number.lower()).order_id == order.order_id
    assert store.order_number_taken(order.order_number)
    assert not store.order_number_taken("ORD-999999")


def test_missing_orders_raise(store) -> None:
    with pytest.raises(OrderNotFound):
        store.get_order("nope")
    with pytest.raises(OrderNotFound):
        store.find_by_number("ORD-000000")
    with pytest.raises(OrderNotFound):
        store.update_order("nope", {"status": OrderStatus.READY})


def test_updates_bump_the_version(store, make_order, now) -> None:
    order = store.add_order(make_order())

    updated = store.update_order(
        order.order_id,
        {"status": OrderStatus.COMPLETED, "completed_at": now},
        expected_version=1,
    )

    assert updated.status is OrderStatus.COMPLETED
    assert updated.completed_at == now
    assert updated.version == 2


def test_stale_writes_are_refused(store, make_order) -> None:
    order = store.add_order(make_order())
    store.update_order(order.order_id, {"status": OrderStatus.IN_KITCHEN}, expected_version=1)

    with pytest.raises(StaleOrder):
        store.update_order(order.order_id, {"status": OrderStatus.CANCELLED}, expected_version=1)

    assert store.get_order(order.order_id).status is OrderStatus.IN_KITCHEN


def test_identity_and_totals_are_immutable(store, make_order) -> None:
    order = store.add_order(make_order())
    with pytest.raises(ValidationError):
        store.update_order(order.order_id, {"total": Decimal("1")})


def test_duplicate_order_numbers_are_rejected(store, make_order) -> None:
    order = store.add_order(make_order())
    clash = make_order(order_number=order.order_number)
    with pytest.raises(ValidationError):
        store.add_order(clash)
    assert len(store.list_orders()) == 1


def test_orders_without_items_are_rejected(store, make_order) -> None:
    with pytest.raises(ValidationError):
        store.add_order(dataclasses.replace(make_order(), items=()))


def test_list_orders_filters_and_sorts_newest_first(store, make_order) -> None:
    old = store.add_order(make_order(minutes_ago=30))
    new = store.add_order(make_order(minutes_ago=1, status=OrderStatus.READY))
    store.add_order(make_order(minutes_ago=10, branch_id="2"))

    assert [o.order_id for o in store.list_orders(branch_id="1")] == [new.order_id, old.order_id]
    assert [o.order_id for o in store.list_orders(statuses=[OrderStatus.READY])] == [new.order_id]
    assert store.list_orders(statuses=[]) == []


def test_payment_records_round_trip(store, make_order) -> None:
    order = store.add_order(
        make_order(payment_method=PaymentMethod.SPLIT),
        PaymentRecord(
            method=PaymentMethod.SPLIT,
            amount_paid=Decimal("3762.5"),
            sub_payments=(
                SubPayment(PaymentMethod.CASH, Decimal("2000")),
                SubPayment(PaymentMethod.CARD, Decimal("1762.5")),
            ),
        ),
    )

    payment = store.get_payment(order.order_id)

    assert payment.method is PaymentMethod.SPLIT
    assert [sub.amount for sub in payment.sub_payments] == [Decimal("2000"), Decimal("1762.5")]
    assert store.get_payment("nope") is None
