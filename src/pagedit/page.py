"""Marked page elements and the page layout they come from."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from rich.errors import MarkupError
from rich.text import Text
from textual import events
from textual.widgets import Static

from . import _address


@dataclass
class ElementBinding:
    file_name: str
    address: str
    text: str = ""
    is_rich_text: bool = False


@dataclass
class PageLayout:
    title: str
    elements: list[ElementBinding] = field(default_factory=list)


def load_page(layout_path: str | Path, data_root: str | Path) -> PageLayout:
    """Read a page layout and fill each element from the local data files.

    Layout format::

        {"title": "Home",
         "elements": [{"file": "home", "path": "hero.title"},
                      {"file": "home", "path": "hero.body", "rich": true}]}

    Each element's text is looked up in ``<data_root>/<file>.json``;
    missing files or fields render empty.
    """
    layout = json.loads(Path(layout_path).read_text(encoding="utf-8"))
    documents: dict[str, object] = {}
    page = PageLayout(title=layout.get("title", ""))
    for item in layout.get("elements", []):
        file_name = item["file"]
        if file_name not in documents:
            path = Path(data_root) / f"{file_name}.json"
            try:
                documents[file_name] = json.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                documents[file_name] = None
        value = _address.get(documents[file_name], item["path"])
        if value is None:
            value = ""
        page.elements.append(
            ElementBinding(
                file_name=file_name,
                address=item["path"],
                text=value if isinstance(value, str) else json.dumps(value, ensure_ascii=False),
                is_rich_text=bool(item.get("rich", False)),
            )
        )
    return page


def render_value(value: str, rich_text: bool) -> Text:
    """Plain values are shown literally; rich values as console markup."""
    if rich_text:
        try:
            return Text.from_markup(value)
        except MarkupError:
            pass
    return Text(value)


class EditableText(Static):
    """A text region bound to one field of a data file."""

    DEFAULT_CSS = """
    EditableText {
        height: auto;
        padding: 0 1;
        margin: 0 0 1 0;
    }
    EditableText.editable {
        border: dashed $accent 50%;
    }
    EditableText.editable:hover {
        border: dashed $accent;
    }
    EditableText.editing {
        border: solid $accent;
    }
    """

    def __init__(
        self,
        text: str = "",
        *,
        file_name: str,
        address: str,
        is_rich_text: bool = False,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(render_value(text, is_rich_text), name=name, id=id, classes=classes)
        self.file_name = file_name
        self.address = address
        self.is_rich_text = is_rich_text
        self._raw = text
        self._click_handler: Callable[[EditableText, events.Click], None] | None = None

    @classmethod
    def from_binding(cls, binding: ElementBinding) -> EditableText:
        return cls(
            binding.text,
            file_name=binding.file_name,
            address=binding.address,
            is_rich_text=binding.is_rich_text,
        )

    def read_text(self) -> str:
        """Markup source for rich elements, the literal text otherwise."""
        return self._raw

    def apply_value(self, value: str) -> None:
        self._raw = value
        self.update(render_value(value, self.is_rich_text))

    def bind_click(self, handler: Callable[[EditableText, events.Click], None]) -> None:
        self._click_handler = handler
        self.add_class("editable")

    def unbind_click(self) -> None:
        self._click_handler = None
        self.remove_class("editable", "editing")

    def on_click(self, event: events.Click) -> None:
        if self._click_handler is not None:
            self._click_handler(self, event)
