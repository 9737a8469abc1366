"""Edit session: the state machine behind one inline editor panel.

    CLOSED -> OPEN -> SAVING -> CLOSED   (saved)
                             -> ERROR -> SAVING (retry) | CLOSED (cancel)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol

from . import _address
from .cache import CacheEntry
from .errors import InvalidTransitionError, PageEditError

if TYPE_CHECKING:
    from .cache import DocumentCache
    from .remote import ContentsClient

logger = logging.getLogger(__name__)

SAVING_MESSAGE = "Saving..."
SAVED_MESSAGE = "Saved! Site will rebuild in ~1 min."

_LONG_TEXT = 80


class PanelState(Enum):
    CLOSED = auto()
    OPEN = auto()
    SAVING = auto()
    ERROR = auto()


class MarkedElement(Protocol):
    """A page element bound to one field of a data file."""

    file_name: str
    address: str
    is_rich_text: bool

    def read_text(self) -> str: ...

    def apply_value(self, value: str) -> None: ...


@dataclass(frozen=True)
class EditTarget:
    element: MarkedElement
    file_name: str
    address: str
    is_rich_text: bool = False

    @classmethod
    def from_element(cls, element: MarkedElement) -> EditTarget:
        return cls(element, element.file_name, element.address, element.is_rich_text)


class EditSession:
    """Edits one marked element and writes the result to the store."""

    def __init__(
        self, target: EditTarget, cache: DocumentCache, store: ContentsClient
    ) -> None:
        self.target = target
        self._cache = cache
        self._store = store
        self.state: PanelState = PanelState.CLOSED
        self.seed: str = ""
        self.status: str = ""

    @property
    def label(self) -> str:
        return _address.label(self.target.address)

    @property
    def is_long(self) -> bool:
        return self.target.is_rich_text or len(self.seed) > _LONG_TEXT

    def _transition(self, state: PanelState) -> None:
        logger.debug(
            "%s.json:%s %s -> %s",
            self.target.file_name,
            self.target.address,
            self.state.name,
            state.name,
        )
        self.state = state

    def open(self) -> str:
        """Seed the editor from the element's displayed text."""
        self.seed = self.target.element.read_text().strip()
        self.status = ""
        self._transition(PanelState.OPEN)
        return self.seed

    async def save(self, value: str) -> bool:
        """Write *value* to the element's field.

        Returns True once the panel can close. Domain failures move the
        session to ERROR with the failure text in ``status`` and drop the
        cached file, so a retry reads it fresh.
        """
        if self.state is PanelState.SAVING:
            logger.debug("Ignoring save while a save is in flight")
            return False
        if self.state not in (PanelState.OPEN, PanelState.ERROR):
            raise InvalidTransitionError(f"cannot save a {self.state.name.lower()} panel")

        if value == self.seed:
            self.status = ""
            self._transition(PanelState.CLOSED)
            return True

        target = self.target
        self.status = SAVING_MESSAGE
        self._transition(PanelState.SAVING)
        try:
            entry = await self._cache.fetch(target.file_name)
            _address.set(entry.document, target.address, value)
            new_hash = await self._store.write(
                target.file_name,
                entry.document,
                entry.content_hash,
                address=target.address,
            )
        except PageEditError as exc:
            logger.warning("Save of %s.json:%s failed: %s", target.file_name, target.address, exc)
            self._fail(str(exc))
            return False
        except Exception as exc:
            logger.exception("Unexpected error saving %s.json:%s", target.file_name, target.address)
            self._fail(f"Save failed ({exc})")
            return False

        self._cache.commit(target.file_name, CacheEntry(entry.document, new_hash))
        # Only touch the page once the store has accepted the write.
        target.element.apply_value(value)
        self.seed = value
        self.status = SAVED_MESSAGE
        self._transition(PanelState.CLOSED)
        return True

    def _fail(self, message: str) -> None:
        # The working copy may be stale or half-edited; read it fresh next time.
        self._cache.invalidate(self.target.file_name)
        self.status = message
        self._transition(PanelState.ERROR)

    def cancel(self) -> bool:
        """Discard the panel. Refused while a save is in flight."""
        if self.state is PanelState.SAVING:
            return False
        if self.state is not PanelState.CLOSED:
            self.status = ""
            self._transition(PanelState.CLOSED)
        return True
