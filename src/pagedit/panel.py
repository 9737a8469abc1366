"""Inline editor panel and the access token prompt."""

from __future__ import annotations

from dataclasses import dataclass

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static, TextArea

from .session import SAVING_MESSAGE, EditSession, PanelState


class EditPanel(Vertical):
    """Editor for one session, mounted directly below its element."""

    DEFAULT_CSS = """
    EditPanel {
        height: auto;
        max-width: 80;
        border: heavy $accent;
        background: $surface;
        padding: 0 1;
        margin: 0 0 1 0;
    }
    EditPanel #pe-header {
        height: 1;
    }
    EditPanel #pe-label {
        width: 1fr;
        text-style: bold;
    }
    EditPanel #pe-file {
        width: auto;
        color: $text-muted;
    }
    EditPanel TextArea {
        height: 8;
    }
    EditPanel #pe-actions {
        height: auto;
        margin-top: 1;
    }
    EditPanel #pe-status {
        height: auto;
        min-height: 1;
    }
    EditPanel #pe-status.saving {
        color: $text-muted;
    }
    EditPanel #pe-status.error {
        color: $error;
    }
    """

    # -- Messages ----------------------------------------------------------

    @dataclass
    class SaveRequested(Message):
        value: str

    @dataclass
    class CancelRequested(Message):
        pass

    # -- Init --------------------------------------------------------------

    def __init__(self, session: EditSession, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self.session = session

    def compose(self) -> ComposeResult:
        session = self.session
        with Horizontal(id="pe-header"):
            yield Static(escape(session.label), id="pe-label")
            yield Static(escape(f"{session.target.file_name}.json"), id="pe-file")
        # Input and TextArea hold raw text; no escaping on the way to the store.
        if session.is_long:
            yield TextArea(session.seed, id="pe-input")
        else:
            yield Input(value=session.seed, id="pe-input")
        with Horizontal(id="pe-actions"):
            yield Button("Save", id="pe-save", variant="primary")
            yield Button("Cancel", id="pe-cancel")
        yield Static("", id="pe-status")

    def on_mount(self) -> None:
        self.query_one("#pe-input").focus()

    @property
    def value(self) -> str:
        editor = self.query_one("#pe-input")
        if isinstance(editor, TextArea):
            return editor.text
        return editor.value

    def show_saving(self) -> None:
        status = self.query_one("#pe-status", Static)
        status.update(SAVING_MESSAGE)
        status.set_class(False, "error")
        status.set_class(True, "saving")

    def show_status(self) -> None:
        """Reflect the session's state and status text."""
        status = self.query_one("#pe-status", Static)
        status.update(escape(self.session.status))
        status.set_class(self.session.state is PanelState.SAVING, "saving")
        status.set_class(self.session.state is PanelState.ERROR, "error")

    # -- Event handlers ----------------------------------------------------

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "pe-save":
            self.post_message(self.SaveRequested(self.value))
        elif event.button.id == "pe-cancel":
            self.post_message(self.CancelRequested())

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.post_message(self.SaveRequested(event.value))


class TokenScreen(ModalScreen[str | None]):
    """Asks for a GitHub personal access token."""

    DEFAULT_CSS = """
    TokenScreen {
        align: center middle;
    }
    TokenScreen > Vertical {
        width: 60;
        height: auto;
        border: heavy $accent;
        background: $surface;
        padding: 1 2;
    }
    TokenScreen #tk-actions {
        height: auto;
        margin-top: 1;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("[b]EDIT MODE[/b]")
            yield Static(
                "Enter your GitHub Personal Access Token\n"
                "[dim](needs 'repo' scope)[/dim]"
            )
            yield Input(placeholder="ghp_...", password=True, id="tk-input")
            with Horizontal(id="tk-actions"):
                yield Button("Connect", id="tk-connect", variant="primary")
                yield Button("Cancel", id="tk-cancel")

    def on_mount(self) -> None:
        self.query_one("#tk-input").focus()

    def _connect(self) -> None:
        token = self.query_one("#tk-input", Input).value.strip()
        if token:
            self.dismiss(token)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._connect()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "tk-connect":
            self._connect()
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)
