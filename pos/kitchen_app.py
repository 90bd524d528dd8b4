"""Kitchen display: a Textual app over the live kitchen queue."""

from __future__ import annotations

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from pos import data
from pos.config import KITCHEN_REFRESH_SECONDS
from pos.logging import get_logger
from pos.errors import Result
from pos.models import Order
from pos.rendering import format_kitchen_stats, format_ticket
from pos.service import PosService
from pos.status import Actor, KitchenTicket, kitchen_stats
from pos.tracking_modal import TrackingModal

logger = get_logger(__name__)


class KitchenDisplayApp(App):
    """Oldest-first queue of the orders the kitchen still has to handle."""

    TITLE = "Kitchen Display"

    CSS = """
    Screen {
        layout: vertical;
    }

    #queue-pane {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #stats-bar {
        height: 1;
        margin-bottom: 1;
    }

    #queue {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #status-line {
        height: 1;
        color: #dddddd;
    }
    """

    selected_index = reactive(None)

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        service: PosService,
        branch_id: str | None = None,
        actor: Actor = Actor.KITCHEN,
        refresh_seconds: float = KITCHEN_REFRESH_SECONDS,
    ) -> None:
        super().__init__()
        self.service = service
        self.branch_id = branch_id
        self.actor = actor
        self.refresh_seconds = refresh_seconds
        self.tickets: list[KitchenTicket] = []
        self.system_status = ""
        if branch_id is not None:
            self.sub_title = data.branch_name(branch_id)

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="queue-pane"):
            yield Static(id="stats-bar")
            yield Static("All caught up!", id="queue")
        yield Static(id="status-line")

    def on_mount(self) -> None:
        self.service.store.bootstrap_schema()
        self.reload_queue()
        self.set_interval(self.refresh_seconds, self.reload_queue)

    def on_key(self, event: Key) -> None:
        # While a modal is active, let the modal own keyboard handling.
        if isinstance(self.screen, TrackingModal):
            return

        if event.key == "enter":
            self._advance_selected()
            event.stop()
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        key = event.character.lower()
        if key == "j":
            self._move_selection(1)
        elif key == "k":
            self._move_selection(-1)
        elif key == "x":
            self._cancel_selected()
        elif key == "t":
            self.push_screen(TrackingModal(self.service))
        else:
            return
        event.stop()

    def reload_queue(self) -> None:
        result = self.service.kitchen_queue(branch_id=self.branch_id)
        if not result.ok:
            self.system_status = result.detail or ""
            self._refresh_all()
            return

        selected = self._selected_ticket()
        self.tickets = result.unwrap()
        # Keep the cursor on the same order across refreshes.
        if selected is not None:
            ids = [ticket.order.order_id for ticket in self.tickets]
            if selected.order.order_id in ids:
                self.selected_index = ids.index(selected.order.order_id)
        self._refresh_all()

    def _selected_ticket(self) -> KitchenTicket | None:
        if self.selected_index is None:
            return None
        if not (0 <= self.selected_index < len(self.tickets)):
            return None
        return self.tickets[self.selected_index]

    def _move_selection(self, delta: int) -> None:
        if not self.tickets:
            return

        if self.selected_index is None:
            self.selected_index = 0 if delta > 0 else len(self.tickets) - 1
        else:
            self.selected_index = (self.selected_index + delta) % len(self.tickets)
        self._refresh_queue()

    def _advance_selected(self) -> None:
        ticket = self._selected_ticket()
        if ticket is None:
            return
        result = self.service.advance(ticket.order.order_id, actor=self.actor, expected_version=ticket.order.version)
        self._report(result, ticket)

    def _cancel_selected(self) -> None:
        ticket = self._selected_ticket()
        if ticket is None:
            return
        result = self.service.cancel(ticket.order.order_id, actor=self.actor, expected_version=ticket.order.version)
        self._report(result, ticket)

    def _report(self, result: Result[Order], ticket: KitchenTicket) -> None:
        if result.ok:
            order = result.unwrap()
            self.system_status = f"{order.order_number} → {order.status.value}"
        else:
            self.system_status = f"{ticket.order.order_number}: {result.detail}"
            logger.warning("Kitchen action failed for %s: %s", ticket.order.order_number, result.detail)
        self.reload_queue()

    def _refresh_all(self) -> None:
        self._refresh_stats()
        self._refresh_queue()
        self.query_one("#status-line", Static).update(self.system_status)

    def _refresh_stats(self) -> None:
        self.query_one("#stats-bar", Static).update(format_kitchen_stats(kitchen_stats(self.tickets)))

    def _refresh_queue(self) -> None:
        queue_widget = self.query_one("#queue", Static)
        if not self.tickets:
            self.selected_index = None
            queue_widget.update("All caught up! No orders in the kitchen queue.")
            return

        if self.selected_index is not None and self.selected_index >= len(self.tickets):
            self.selected_index = len(self.tickets) - 1

        lines = Text()
        for idx, ticket in enumerate(self.tickets):
            if idx > 0:
                lines.append("\n\n")
            lines.append_text(format_ticket(ticket, selected=idx == self.selected_index))
        queue_widget.update(lines)

