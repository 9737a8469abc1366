"""Shared fakes for pagedit tests."""

import copy

import pytest

from pagedit.cache import CacheEntry, DocumentCache
from pagedit.errors import ConflictError


class FakeStore:
    """Records reads and writes; serves documents from a dict."""

    def __init__(self, files=None):
        self.files = {name: (copy.deepcopy(doc), sha) for name, (doc, sha) in (files or {}).items()}
        self.reads: list[str] = []
        self.writes: list[tuple[str, object, str, str]] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None
        self._counter = 0

    async def read(self, file_name):
        self.reads.append(file_name)
        if self.read_error is not None:
            raise self.read_error
        document, sha = self.files[file_name]
        return CacheEntry(copy.deepcopy(document), sha)

    async def write(self, file_name, document, expected_hash, *, address=""):
        self.writes.append((file_name, copy.deepcopy(document), expected_hash, address))
        if self.write_error is not None:
            raise self.write_error
        _, current = self.files.get(file_name, (None, None))
        if current is not None and current != expected_hash:
            raise ConflictError()
        self._counter += 1
        new_hash = f"{expected_hash}-{self._counter}"
        self.files[file_name] = (copy.deepcopy(document), new_hash)
        return new_hash

    async def aclose(self):
        pass


class FakeElement:
    """Stands in for a marked page element."""

    def __init__(self, text, file_name="home", address="hero.title", is_rich_text=False):
        self.text = text
        self.file_name = file_name
        self.address = address
        self.is_rich_text = is_rich_text
        self.applied: list[str] = []
        self.handler = None

    def read_text(self):
        return self.text

    def apply_value(self, value):
        self.applied.append(value)
        self.text = value

    def bind_click(self, handler):
        self.handler = handler

    def unbind_click(self):
        self.handler = None


class FakeClick:
    def __init__(self):
        self.prevented = False
        self.stopped = False

    def prevent_default(self, prevent=True):
        self.prevented = prevent

    def stop(self, stop=True):
        self.stopped = stop


@pytest.fixture
def store():
    return FakeStore({"home": ({"hero": {"title": "Old"}}, "abc")})


@pytest.fixture
def cache(store):
    return DocumentCache(store)
