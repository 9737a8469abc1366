"""Edit mode: binds marked elements and owns the one open edit session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, Protocol

from .errors import CredentialMissingError
from .session import SAVED_MESSAGE, EditSession, EditTarget, MarkedElement, PanelState

if TYPE_CHECKING:
    from .cache import DocumentCache
    from .config import CredentialStore
    from .remote import ContentsClient

logger = logging.getLogger(__name__)

MODE_ON_MESSAGE = "Edit mode ON: click any highlighted text to edit"
MODE_OFF_MESSAGE = "Edit mode OFF"
BUSY_MESSAGE = "A save is still in progress"


class ClickEvent(Protocol):
    def prevent_default(self, prevent: bool = True) -> object: ...

    def stop(self, stop: bool = True) -> None: ...


class BindableElement(MarkedElement, Protocol):
    def bind_click(self, handler: Callable[[BindableElement, ClickEvent], None]) -> None: ...

    def unbind_click(self) -> None: ...


def _ignore(*args: object) -> None:
    pass


class EditModeController:
    """Process-wide edit mode state.

    The UI layer passes callbacks to mount (``on_open``) and remove
    (``on_close``) the panel of a session and to show notifications
    (``notify(message, severity)``).
    """

    def __init__(
        self,
        cache: DocumentCache,
        credentials: CredentialStore,
        *,
        store: ContentsClient,
        on_open: Callable[[EditSession], None] = _ignore,
        on_close: Callable[[EditSession], None] = _ignore,
        notify: Callable[[str, str], None] = _ignore,
    ) -> None:
        self.cache = cache
        self.credentials = credentials
        self.store = store
        self.on_open = on_open
        self.on_close = on_close
        self.notify = notify
        self.active: bool = False
        self.session: EditSession | None = None
        self._bound: list[BindableElement] = []

    def activate(self, elements: Iterable[BindableElement]) -> None:
        if not self.credentials.get():
            raise CredentialMissingError()
        self.active = True
        for element in elements:
            element.bind_click(self._intercept)
            self._bound.append(element)
        logger.info("Edit mode on (%d elements)", len(self._bound))
        self.notify(MODE_ON_MESSAGE, "information")

    def deactivate(self) -> None:
        self.active = False
        self.close_panel(force=True)
        for element in self._bound:
            element.unbind_click()
        self._bound.clear()
        self.cache.clear()
        logger.info("Edit mode off")
        self.notify(MODE_OFF_MESSAGE, "information")

    def toggle(self, elements: Iterable[BindableElement]) -> bool:
        """Flip edit mode and return the new state."""
        if self.active:
            self.deactivate()
        else:
            self.activate(elements)
        return self.active

    def _intercept(self, element: BindableElement, event: ClickEvent) -> None:
        # Handlers can outlive deactivation.
        if not self.active:
            return
        event.prevent_default()
        event.stop()
        self.open_session(element)

    def open_session(self, element: MarkedElement) -> EditSession | None:
        """Open a panel for *element*, closing the current one first."""
        if self.session is not None and self.session.state is PanelState.SAVING:
            self.notify(BUSY_MESSAGE, "warning")
            return None
        self.close_panel()
        session = EditSession(EditTarget.from_element(element), self.cache, self.store)
        session.open()
        self.session = session
        self.on_open(session)
        return session

    async def save(self, value: str) -> bool:
        """Save the open panel; close it on success."""
        session = self.session
        if session is None:
            return False
        saved = await session.save(value)
        if saved:
            if session.status == SAVED_MESSAGE:
                self.notify(SAVED_MESSAGE, "information")
            self._release(session)
        elif session.state is PanelState.ERROR:
            self.notify(session.status, "error")
        return saved

    def close_panel(self, *, force: bool = False) -> bool:
        """Cancel and remove the open panel.

        A panel that is saving stays open unless *force* is set; the save
        itself still runs to completion.
        """
        session = self.session
        if session is None:
            return True
        if not session.cancel() and not force:
            return False
        self._release(session)
        return True

    def _release(self, session: EditSession) -> None:
        if self.session is not session:
            return
        self.session = None
        self.on_close(session)
