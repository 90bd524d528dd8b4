"""Rendering helpers shared by the kitchen display and the CLI."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.text import Text

from pos import data
from pos.listing import order_stats
from pos.models import MenuItem, Order, OrderItem, OrderStatus, OrderType
from pos.money import format_money
from pos.status import KitchenTicket, TrackingView

STATUS_STYLES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "bold #0b1f0f on #f2c14e",
    OrderStatus.IN_KITCHEN: "bold #ffffff on #2f6db5",
    OrderStatus.READY: "bold #0b1f0f on #5fbf72",
    OrderStatus.SERVED: "bold #ffffff on #7b5ea7",
    OrderStatus.COMPLETED: "bold #ffffff on #4a4a4a",
    OrderStatus.CANCELLED: "bold #ffffff on #b23a48",
}


def badge_style(status: OrderStatus) -> str:
    """Return a consistent badge style for a status tag."""
    return STATUS_STYLES[status]


def status_badge(status: OrderStatus) -> Text:
    return Text(f" {status.value.upper()} ", style=badge_style(status))


def format_time_ago(created_at: datetime, now: datetime | None = None) -> str:
    minutes = int(((now or datetime.now(timezone.utc)) - created_at).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def fulfillment_label(order: Order) -> str:
    """Where the order goes: table number, takeaway or delivery."""
    if order.order_type is OrderType.DINE_IN and order.table_id:
        table = data.table(order.table_id)
        return f"Table {table.number}" if table is not None else f"Table {order.table_id}"
    if order.order_type is OrderType.DELIVERY:
        return "Delivery"
    return "Takeaway"


def format_item_line(order_item: OrderItem) -> Text:
    text = Text(f"{order_item.quantity}x {order_item.name}")
    if order_item.variation:
        text.append(f" ({order_item.variation})", style="dim")
    if order_item.notes:
        text.append(f" [{order_item.notes}]", style="italic #ffb3b3")
    return text


def format_ticket(ticket: KitchenTicket, selected: bool = False) -> Text:
    """One kitchen queue entry: header line, then its items."""
    order = ticket.order
    text = Text()
    text.append("➤ " if selected else "  ")
    text.append_text(status_badge(order.status))
    text.append(f" {order.order_number}", style="bold")
    text.append(f"  {fulfillment_label(order)}  {order.customer_name}")
    wait = Text(f"  {ticket.wait_minutes} min")
    if ticket.urgent:
        wait.append(" URGENT", style="bold #ffffff on #b23a48")
    text.append_text(wait)
    for order_item in order.items:
        text.append("\n      ")
        text.append_text(format_item_line(order_item))
    if order.notes:
        text.append(f"\n      Note: {order.notes}", style="italic")
    return text


def format_kitchen_stats(stats: dict[str, int]) -> Text:
    text = Text()
    text.append(f"Pending {stats['pending']}", style=badge_style(OrderStatus.PENDING))
    text.append("  ")
    text.append(f"Cooking {stats['cooking']}", style=badge_style(OrderStatus.IN_KITCHEN))
    text.append("  ")
    text.append(f"Ready {stats['ready']}", style=badge_style(OrderStatus.READY))
    return text


def format_tracking(view: TrackingView) -> Text:
    """Customer-facing progress: order header, step indicator and ETA."""
    order = view.order
    text = Text()
    text.append(f"Order {order.order_number}", style="bold")
    text.append(f"  {order.customer_name}\n")
    if order.status is OrderStatus.CANCELLED:
        text.append("This order was cancelled.", style="bold #ffb3b3")
        return text

    for index, label in enumerate(view.steps):
        if index > 0:
            text.append(" → ", style="dim")
        if index < view.step_index:
            text.append(f"✓ {label}", style="#5fbf72")
        elif index == view.step_index:
            text.append(f"● {label}", style="bold")
        else:
            text.append(f"○ {label}", style="dim")
    text.append(f"\nEstimated time: {view.eta_label}")
    text.append(f"\nTotal: {format_money(order.total)}")
    return text


def format_order_row(order: Order, now: datetime | None = None) -> Text:
    text = Text()
    text.append_text(status_badge(order.status))
    text.append(f" {order.order_number}", style="bold")
    text.append(f"  {order.order_type.value:<9} {fulfillment_label(order):<10}")
    text.append(f" {order.customer_name:<20} {format_money(order.total):>14}")
    text.append(f"  {format_time_ago(order.created_at, now)}", style="dim")
    return text


def format_order_table(orders: list[Order], now: datetime | None = None) -> Text:
    """Order list with a stats footer, as printed by ``pos orders``."""
    text = Text()
    if not orders:
        text.append("(no orders)", style="dim")
    for index, order in enumerate(orders):
        if index > 0:
            text.append("\n")
        text.append_text(format_order_row(order, now))
    stats = order_stats(orders)
    text.append(
        f"\n\nActive {stats['active']}  Pending {stats['pending']}  "
        f"Completed {stats['completed']}  Revenue {format_money(stats['revenue'])}"
    )
    return text


def format_menu(items: list[MenuItem]) -> Text:
    """Orderable dishes grouped by category, variations indented under their dish."""
    text = Text()
    if not items:
        text.append("(no dishes)", style="dim")
        return text
    category = None
    for menu_item in sorted(items, key=lambda entry: entry.category):
        if menu_item.category != category:
            if category is not None:
                text.append("\n")
            category = menu_item.category
            text.append(f"{category}\n", style="bold")
        text.append(f"  {menu_item.item_id:<16} {menu_item.name:<20} {format_money(menu_item.price):>12}\n")
        for variation in menu_item.variations:
            text.append(f"    {variation.variation_id:<14} {variation.name:<20} {format_money(variation.price):>12}\n", style="dim")
    return text
