"""Session-scoped cache of fetched data files.

Each entry holds the parsed document and the sha it was read or last
written under. The document object is the shared working copy: repeated
fetches of the same file return the same object, so edits made against it
accumulate until a save commits them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .remote import ContentsClient

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    document: object
    content_hash: str


class DocumentCache:
    """Per-file document cache with no expiry.

    Entries live until a failed save invalidates them or edit mode is
    left and the whole cache is cleared.
    """

    def __init__(self, store: ContentsClient) -> None:
        self._store = store
        self._entries: dict[str, CacheEntry] = {}

    def __contains__(self, file_name: object) -> bool:
        return file_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def fetch(self, file_name: str) -> CacheEntry:
        """Return the cached entry, reading it from the store on a miss.

        Store errors propagate and leave nothing cached.
        """
        entry = self._entries.get(file_name)
        if entry is not None:
            logger.debug("Cache hit: %s (%s)", file_name, entry.content_hash[:12])
            return entry
        logger.debug("Cache miss: %s", file_name)
        entry = await self._store.read(file_name)
        self._entries[file_name] = entry
        return entry

    def commit(self, file_name: str, entry: CacheEntry) -> None:
        """Replace the entry after a successful write."""
        logger.debug("Cache commit: %s (%s)", file_name, entry.content_hash[:12])
        self._entries[file_name] = entry

    def invalidate(self, file_name: str) -> None:
        if self._entries.pop(file_name, None) is not None:
            logger.debug("Cache invalidate: %s", file_name)

    def clear(self) -> None:
        logger.debug("Cache clear (%d entries)", len(self._entries))
        self._entries.clear()
