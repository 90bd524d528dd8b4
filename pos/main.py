"""Entry point for the ``pos`` command."""

from __future__ import annotations

import argparse
import logging

from rich.console import Console

from pos import data
from pos.config import DB_PATH, DEFAULT_BRANCH_ID
from pos.draft import OrderDraft
from pos.logging import configure_logging, get_logger, set_log_level
from pos.models import DiscountKind, OrderType, PaymentMethod
from pos.persistence import SqliteOrderStore
from pos.rendering import format_menu, format_order_table, format_tracking
from pos.service import PosService
from pos.status import Actor

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pos", description="Restaurant point-of-sale core")
    parser.add_argument("--db", default=DB_PATH, help="SQLite database path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    kitchen = sub.add_parser("kitchen", help="Run the kitchen display")
    kitchen.add_argument("--branch", default=None)
    kitchen.add_argument("--actor", choices=[actor.value for actor in Actor if actor is not Actor.CUSTOMER], default="kitchen")

    track = sub.add_parser("track", help="Show the tracking view for an order number")
    track.add_argument("number")

    orders = sub.add_parser("orders", help="List orders with summary stats")
    orders.add_argument("--status", default="all")
    orders.add_argument("--type", dest="order_type", default="all")
    orders.add_argument("--search", default="")
    orders.add_argument("--branch", default=None)

    menu = sub.add_parser("menu", help="List dishes that can be ordered")
    menu.add_argument("--branch", default=None)
    menu.add_argument("--category", choices=data.menu_categories(), default=None)
    menu.add_argument("--search", default="")

    sub.add_parser("demo", help="Seed sample orders")
    return parser


def seed_demo_orders(service: PosService) -> list[str]:
    """Create a handful of orders across statuses; returns their numbers."""
    numbers: list[str] = []

    draft = OrderDraft(OrderType.DINE_IN, branch_id=DEFAULT_BRANCH_ID)
    draft.set_customer("Amina Nkeng", "677000111")
    draft.set_table("t1")
    draft.add_item_by_id("ndole")
    draft.add_item_by_id("plantain")
    draft.add_item_by_id("ginger_juice")
    numbers.append(service.place_order(draft).unwrap().order_number)

    draft = OrderDraft(OrderType.TAKEAWAY, branch_id=DEFAULT_BRANCH_ID)
    draft.set_customer("Joel Tchami")
    draft.add_item_by_id("poulet_dg", "whole")
    draft.add_item_by_id("miondo")
    order = service.place_order(draft).unwrap()
    service.advance(order.order_id).unwrap()
    numbers.append(order.order_number)

    draft = OrderDraft(OrderType.DELIVERY, branch_id=DEFAULT_BRANCH_ID)
    draft.set_customer("Chantal Mbarga", "699123456")
    draft.set_delivery_address("Rue Joss, Bonanjo")
    draft.add_item_by_id("poisson_braise", "large")
    draft.add_item_by_id("soya")
    draft.apply_discount(DiscountKind.PERCENTAGE, 10, "Loyalty")
    receipt = service.checkout(draft, PaymentMethod.MOBILE, send_to_kitchen=True, provider="mtn", reference="MP240101").unwrap()
    numbers.append(receipt.order.order_number)

    draft = OrderDraft(OrderType.TAKEAWAY, branch_id=DEFAULT_BRANCH_ID)
    draft.add_item_by_id("eru")
    draft.add_item_by_id("folere")
    draft.toggle_service_charge()
    receipt = service.checkout(draft, PaymentMethod.CASH, tendered=10000).unwrap()
    numbers.append(receipt.order.order_number)

    logger.info("Seeded %d demo orders", len(numbers))
    return numbers


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface."""
    configure_logging()
    args = _build_parser().parse_args(argv)
    if args.verbose:
        set_log_level(logging.DEBUG)
    console = Console()

    store = SqliteOrderStore(args.db)
    store.bootstrap_schema()
    service = PosService(store)

    if args.command == "menu":
        console.print(format_menu(data.available_menu_items(args.branch, args.category, args.search)))
        return 0

    if args.command == "kitchen":
        from pos.kitchen_app import KitchenDisplayApp

        KitchenDisplayApp(service, branch_id=args.branch, actor=Actor(args.actor)).run()
        return 0

    if args.command == "track":
        result = service.track_order(args.number)
        if not result.ok:
            console.print(f"[red]{result.detail}[/red]")
            return 1
        console.print(format_tracking(result.unwrap()))
        return 0

    if args.command == "orders":
        result = service.list_orders(
            branch_id=args.branch,
            status=args.status,
            order_type=args.order_type,
            search=args.search,
        )
        if not result.ok:
            console.print(f"[red]{result.detail}[/red]")
            return 1
        console.print(format_order_table(result.unwrap()))
        return 0

    numbers = seed_demo_orders(service)
    console.print(f"Seeded orders: {', '.join(numbers)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
