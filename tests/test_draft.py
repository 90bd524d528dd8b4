from __future__ import annotations

import re
from decimal import Decimal

import pytest

import pos.draft as draft_module
from pos.config import WALK_IN_CUSTOMER_NAME
from pos.draft import OrderDraft, new_order_number
from pos.errors import InvalidDiscount, ValidationError
from pos.models import DiscountKind, MenuItem, OrderStatus, OrderType, PaymentMethod, PaymentRecord

TAX = Decimal("0.075")
DISH = MenuItem(item_id="dish", name="Dish", category="Mains", price=Decimal("1000"))


def _draft(order_type: OrderType = OrderType.TAKEAWAY) -> OrderDraft:
    return OrderDraft(order_type, branch_id="1", tax_rate=TAX)


def test_draft_prices_discount_service_charge_and_tax() -> None:
    draft = _draft()
    line = draft.add_item(DISH)
    draft.update_quantity(line.item_id, 1)
    draft.apply_discount(DiscountKind.PERCENTAGE, 10)
    draft.toggle_service_charge()

    pricing = draft.pricing()
    assert (pricing.subtotal, pricing.discount, pricing.service_charge) == (2000, 200, 200)
    assert pricing.tax == Decimal("150")
    assert pricing.total == Decimal("2150")


def test_discount_follows_the_cart_and_never_exceeds_it() -> None:
    draft = _draft()
    line = draft.add_item(DISH)
    draft.add_item(DISH)
    draft.apply_discount("fixed", 1500)
    assert draft.discount_amount == Decimal("1500")

    draft.update_quantity(line.item_id, -1)
    assert draft.discount_amount == Decimal("1000")
    assert draft.pricing().total == Decimal("0")


def test_rejected_discount_leaves_previous_discount_in_place() -> None:
    draft = _draft()
    draft.add_item(DISH)
    draft.apply_discount("percentage", 10)

    with pytest.raises(InvalidDiscount):
        draft.apply_discount("percentage", -5)

    assert draft.discount_amount == Decimal("100")


def test_service_charge_toggles_off_and_tracks_subtotal() -> None:
    draft = _draft()
    draft.add_item(DISH)
    assert draft.toggle_service_charge() == Decimal("100")
    draft.add_item(DISH)
    assert draft.service_charge == Decimal("200")
    assert draft.toggle_service_charge() == Decimal("0")


def test_clear_resets_discount_and_service_charge() -> None:
    draft = _draft()
    draft.add_item(DISH)
    draft.apply_discount("fixed", 100)
    draft.toggle_service_charge()

    draft.clear()

    assert draft.cart.is_empty
    assert draft.discount is None
    assert draft.service_charge == 0
    assert draft.pricing().total == 0


def test_empty_cart_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Cart is empty"):
        _draft().validate(require_customer_name=False)


def test_order_intake_requires_customer_name() -> None:
    draft = _draft()
    draft.add_item(DISH)
    with pytest.raises(ValidationError, match="Customer name"):
        draft.validate(require_customer_name=True)
    draft.validate(require_customer_name=False)


@pytest.mark.parametrize("table_id", [None, "t3", "t6", "nope"])
def test_dine_in_needs_an_available_table_in_the_branch(table_id) -> None:
    draft = _draft(OrderType.DINE_IN)
    draft.add_item(DISH)
    draft.set_table(table_id)
    with pytest.raises(ValidationError):
        draft.validate(require_customer_name=False)


def test_dine_in_with_free_table_validates() -> None:
    draft = _draft(OrderType.DINE_IN)
    draft.add_item(DISH)
    draft.set_table("t2")
    draft.validate(require_customer_name=False)


def test_delivery_needs_an_address() -> None:
    draft = _draft(OrderType.DELIVERY)
    draft.add_item(DISH)
    draft.set_delivery_address("   ")
    with pytest.raises(ValidationError, match="Delivery address"):
        draft.validate(require_customer_name=False)


@pytest.mark.parametrize(
    ("menu_item_id", "variation_id"),
    [("unknown", None), ("achu", None), ("poulet_dg", "family")],
)
def test_catalog_lookups_reject_unorderable_items(menu_item_id, variation_id) -> None:
    with pytest.raises(ValidationError):
        _draft().add_item_by_id(menu_item_id, variation_id)


def test_add_item_rejects_unknown_variation() -> None:
    draft = _draft()
    with pytest.raises(ValidationError):
        draft.add_item(DISH, "large")
    assert draft.cart.is_empty


def test_branch_only_dishes_stay_in_their_branch() -> None:
    draft = OrderDraft(OrderType.TAKEAWAY, branch_id="2")
    with pytest.raises(ValidationError, match="not served"):
        draft.add_item_by_id("koki")


def test_unknown_order_type_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        OrderDraft("drive-through")


def test_build_order_freezes_pricing_and_payment(now) -> None:
    draft = _draft()
    draft.add_item(DISH)
    draft.notes = "  ring the bell  "
    payment = PaymentRecord(method=PaymentMethod.CARD, amount_paid=Decimal("1075"), terminal="terminal-1")

    order = draft.build_order("ORD-000001", status=OrderStatus.COMPLETED, payment=payment, now=now)

    assert order.customer_name == WALK_IN_CUSTOMER_NAME
    assert order.total == Decimal("1075")
    assert order.completed_at == now
    assert order.payment_method is PaymentMethod.CARD
    assert order.payment_reference == "terminal-1"
    assert order.notes == "ring the bell"
    assert order.table_id is None

    draft.cart.clear()
    assert len(order.items) == 1


def test_order_numbers_skip_taken_values(monkeypatch) -> None:
    monkeypatch.setattr(draft_module.time, "time_ns", lambda: 1_700_000_123_456_000_000)
    taken = {"ORD-123456", "ORD-123457"}

    assert new_order_number(taken.__contains__) == "ORD-123458"


def test_order_number_format() -> None:
    assert re.fullmatch(r"ORD-\d{6}", new_order_number())
