"""Terminal page with in-place editing of its JSON-backed text."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Button, Header

from .cache import DocumentCache
from .config import CredentialStore, SiteConfig
from .controller import EditModeController
from .errors import PageEditError
from .page import EditableText, PageLayout, load_page
from .panel import EditPanel, TokenScreen
from .remote import ContentsClient
from .session import EditSession


class PageEditApp(App):
    """Renders a page of marked elements and edits them in place."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #page {
        height: 1fr;
        padding: 1 2;
    }
    #toggle {
        dock: bottom;
        width: auto;
        min-width: 8;
        margin: 0 0 1 1;
    }
    #toggle.active {
        background: $error;
    }
    """

    TITLE = "Page Editor"
    BINDINGS = [
        Binding("ctrl+e", "toggle_edit", "Edit mode", priority=True),
        Binding("escape", "close_panel", "Close editor", show=False),
    ]
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        page: PageLayout,
        config: SiteConfig,
        *,
        credentials: CredentialStore | None = None,
        store: ContentsClient | None = None,
        start_editing: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.page = page
        self.credentials = credentials or CredentialStore()
        self.store = store or ContentsClient(config, self.credentials)
        self.start_editing = start_editing
        self.controller = EditModeController(
            DocumentCache(self.store),
            self.credentials,
            store=self.store,
            on_open=self._mount_panel,
            on_close=self._remove_panel,
            notify=self._notify,
        )
        self._panel: EditPanel | None = None
        self._panel_element: EditableText | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(id="page"):
            for binding in self.page.elements:
                yield EditableText.from_binding(binding)
        yield Button("EDIT", id="toggle")

    def on_mount(self) -> None:
        if self.page.title:
            self.sub_title = self.page.title
        if self.start_editing:
            self.action_toggle_edit()

    async def on_unmount(self) -> None:
        await self.store.aclose()

    # -- Edit mode ---------------------------------------------------------

    def _elements(self) -> list[EditableText]:
        return list(self.query(EditableText))

    def _update_toggle(self) -> None:
        toggle = self.query_one("#toggle", Button)
        toggle.label = "EXIT" if self.controller.active else "EDIT"
        toggle.set_class(self.controller.active, "active")

    def action_toggle_edit(self) -> None:
        if self.controller.active or self.credentials.get():
            self.controller.toggle(self._elements())
        else:
            self.push_screen(TokenScreen(), self._on_token)
        self._update_toggle()

    def action_close_panel(self) -> None:
        self.controller.close_panel()

    def _on_token(self, token: str | None) -> None:
        if not token:
            return
        self.credentials.set(token)
        self.controller.activate(self._elements())
        self._update_toggle()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "toggle":
            self.action_toggle_edit()

    def _notify(self, message: str, severity: str) -> None:
        self.notify(message, severity=severity, timeout=6 if severity == "error" else 3)

    # -- Panel -------------------------------------------------------------

    def _mount_panel(self, session: EditSession) -> None:
        element = session.target.element
        if not isinstance(element, EditableText):
            return
        panel = EditPanel(session, id="edit-panel")
        self.query_one("#page").mount(panel, after=element)
        element.add_class("editing")
        self._panel = panel
        self._panel_element = element

    def _remove_panel(self, session: EditSession) -> None:
        if self._panel is not None and self._panel.session is session:
            self._panel.remove()
            self._panel = None
        if self._panel_element is not None:
            self._panel_element.remove_class("editing")
            self._panel_element = None

    def on_edit_panel_save_requested(self, event: EditPanel.SaveRequested) -> None:
        panel = self._panel
        if panel is None:
            return
        self.run_worker(self._save(panel, event.value), group="save")

    async def _save(self, panel: EditPanel, value: str) -> None:
        if value != panel.session.seed:
            panel.show_saving()
        try:
            await self.controller.save(value)
        except PageEditError as exc:
            self._notify(str(exc), "error")
        if panel.is_mounted:
            panel.show_status()

    def on_edit_panel_cancel_requested(self, event: EditPanel.CancelRequested) -> None:
        self.controller.close_panel()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="pagedit",
        description="Edit a site's JSON-backed text in place",
    )
    parser.add_argument("layout", help="page layout JSON file")
    parser.add_argument(
        "--site-root",
        default=".",
        help="local checkout of the site (default: current directory)",
    )
    parser.add_argument("--repo", help="repository as owner/name (PAGEDIT_REPO)")
    parser.add_argument("--branch", help="branch to commit to (PAGEDIT_BRANCH)")
    parser.add_argument("--data-dir", help="data directory in the repository (PAGEDIT_DATA_DIR)")
    parser.add_argument(
        "-e", "--edit",
        action="store_true",
        default=False,
        help="enter edit mode on start",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="write debug logs to pagedit.log",
    )
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            filename="pagedit.log",
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    try:
        config = SiteConfig.from_env(repo=args.repo, branch=args.branch, data_dir=args.data_dir)
        page = load_page(args.layout, Path(args.site_root) / config.data_dir)
    except PageEditError as exc:
        print(f"pagedit: {exc}", file=sys.stderr)
        sys.exit(2)
    except (OSError, ValueError, KeyError) as exc:
        print(f"pagedit: cannot load page: {exc}", file=sys.stderr)
        sys.exit(1)

    app = PageEditApp(page, config, start_editing=args.edit)
    app.run()


if __name__ == "__main__":
    main()
