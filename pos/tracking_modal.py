"""Order tracking lookup modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from pos.rendering import format_tracking
from pos.service import PosService

MAX_NUMBER_LENGTH = 12


class TrackingModal(ModalScreen[None]):
    """Look an order up by number and show the customer progress view."""

    CSS = """
    TrackingModal {
        align: center middle;
        background: $background 60%;
    }

    #tracking-dialog {
        width: 72;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #tracking-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #tracking-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #tracking-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #tracking-result {
        margin-bottom: 1;
    }

    #tracking-help {
        color: #dddddd;
    }
    """

    def __init__(self, service: PosService) -> None:
        super().__init__()
        self.service = service
        self.value = ""
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="tracking-dialog"):
            yield Static("Track Order", id="tracking-title")
            yield Static(id="tracking-value")
            yield Static(id="tracking-error")
            yield Static(id="tracking-result")
            yield Static("Type the order number. Enter look up. Backspace delete. Esc/Ctrl+C close.", id="tracking-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._lookup()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and (event.character.isalnum() or event.character == "-"):
            if len(self.value) < MAX_NUMBER_LENGTH:
                self.value += event.character.upper()
            self.error = ""
            self._refresh_content()
            event.stop()

    def _lookup(self) -> None:
        result_widget = self.query_one("#tracking-result", Static)
        if not self.value:
            self.error = "Order number is required."
            result_widget.update("")
            self._refresh_content()
            return

        result = self.service.track_order(self.value)
        if not result.ok:
            self.error = result.detail or "Order not found."
            result_widget.update("")
        else:
            self.error = ""
            result_widget.update(format_tracking(result.unwrap()))
        self._refresh_content()

    def _refresh_content(self) -> None:
        value_widget = self.query_one("#tracking-value", Static)
        error_widget = self.query_one("#tracking-error", Static)
        value_widget.update(self.value or "")
        error_widget.update(self.error or "")
