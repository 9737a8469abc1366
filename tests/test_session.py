"""Tests for the edit session state machine."""

import asyncio
import logging

import pytest

from pagedit.cache import CacheEntry
from pagedit.errors import (
    CONFLICT_MESSAGE,
    ConflictError,
    InvalidTransitionError,
    TransientError,
    WriteError,
)
from pagedit.session import SAVED_MESSAGE, EditSession, EditTarget, PanelState
from tests.conftest import FakeElement


def _session(element, cache, store):
    return EditSession(EditTarget.from_element(element), cache, store)


class TestOpen:
    def test_open_seeds_from_element(self, cache, store):
        session = _session(FakeElement("  Old \n"), cache, store)
        assert session.state is PanelState.CLOSED
        assert session.open() == "Old"
        assert session.seed == "Old"
        assert session.state is PanelState.OPEN

    def test_open_keeps_rich_markup(self, cache, store):
        element = FakeElement("[b]Bold[/b] text", address="hero.body", is_rich_text=True)
        session = _session(element, cache, store)
        assert session.open() == "[b]Bold[/b] text"
        assert session.is_long

    def test_is_long_for_long_plain_text(self, cache, store):
        session = _session(FakeElement("x" * 81), cache, store)
        session.open()
        assert session.is_long

    def test_short_plain_text_is_not_long(self, cache, store):
        session = _session(FakeElement("short"), cache, store)
        session.open()
        assert not session.is_long

    def test_label(self, cache, store):
        session = _session(FakeElement("x", address="releases[2].title"), cache, store)
        assert session.label == "title"


class TestSave:
    def test_cache_hit_scenario(self, cache, store):
        """Cached home at abc; hero.title Old -> New."""
        cache.commit("home", CacheEntry({"hero": {"title": "Old"}}, "abc"))
        element = FakeElement("Old")
        session = _session(element, cache, store)
        session.open()

        assert asyncio.run(session.save("New")) is True

        assert store.reads == []
        assert store.writes == [("home", {"hero": {"title": "New"}}, "abc", "hero.title")]
        entry = asyncio.run(cache.fetch("home"))
        assert entry.content_hash == store.files["home"][1]
        assert entry.content_hash != "abc"
        assert element.text == "New"
        assert session.state is PanelState.CLOSED
        assert session.status == SAVED_MESSAGE

    def test_conflict_scenario(self, cache, store):
        """Same setup; the store reports a conflict."""
        cache.commit("home", CacheEntry({"hero": {"title": "Old"}}, "abc"))
        store.write_error = ConflictError()
        element = FakeElement("Old")
        session = _session(element, cache, store)
        session.open()

        assert asyncio.run(session.save("New")) is False

        assert "home" not in cache
        assert session.state is PanelState.ERROR
        assert session.status == CONFLICT_MESSAGE
        assert element.text == "Old"
        assert element.applied == []

    def test_generic_write_error_message(self, cache, store):
        store.write_error = WriteError("Save failed (500)", 500)
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        asyncio.run(session.save("New"))
        assert session.status == "Save failed (500)"
        assert session.status != CONFLICT_MESSAGE

    def test_unchanged_value_makes_no_calls(self, cache, store):
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        assert asyncio.run(session.save("Old")) is True
        assert store.reads == []
        assert store.writes == []
        assert session.state is PanelState.CLOSED

    def test_cache_miss_reads_then_writes(self, cache, store):
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        asyncio.run(session.save("New"))
        assert store.reads == ["home"]
        assert store.writes[0][2] == "abc"

    def test_second_write_uses_new_hash(self, cache, store):
        element = FakeElement("Old")
        session = _session(element, cache, store)
        session.open()
        asyncio.run(session.save("New"))
        first_hash = asyncio.run(cache.fetch("home")).content_hash

        again = _session(element, cache, store)
        again.open()
        asyncio.run(again.save("Newer"))

        assert store.writes[1][2] == first_hash
        assert store.writes[1][2] != "abc"
        assert store.reads == ["home"]

    def test_unexpected_error_enters_error_state(self, cache, store):
        cache.commit("home", CacheEntry({"hero": {"title": "Old"}}, "h1"))
        store.write_error = RuntimeError("boom")
        element = FakeElement("Old")
        session = _session(element, cache, store)
        session.open()
        assert asyncio.run(session.save("New")) is False
        assert session.state is PanelState.ERROR
        assert session.status == "Save failed (boom)"
        assert "home" not in cache
        assert element.applied == []
        assert session.cancel() is True
        assert session.state is PanelState.CLOSED

    def test_non_ascii_digit_key_enters_error_state(self, cache, store):
        store.files["home"] = ({"tracks": ["One"]}, "h1")
        session = _session(FakeElement("One", address="tracks.\u00b2"), cache, store)
        session.open()
        assert asyncio.run(session.save("Two")) is False
        assert session.state is PanelState.ERROR
        assert store.writes == []

    def test_failed_save_logs_warning(self, cache, store, caplog):
        store.write_error = WriteError("Save failed (500)", 500)
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        with caplog.at_level(logging.INFO, logger="pagedit.session"):
            asyncio.run(session.save("New"))
        failures = [r for r in caplog.records if "failed" in r.getMessage()]
        assert [r.levelno for r in failures] == [logging.WARNING]

    def test_read_error_enters_error_state(self, cache, store):
        store.read_error = TransientError("Failed to fetch home.json (503)", 503)
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        assert asyncio.run(session.save("New")) is False
        assert session.state is PanelState.ERROR
        assert session.status == "Failed to fetch home.json (503)"
        assert store.writes == []

    def test_invalid_parent_enters_error_state(self, cache, store):
        session = _session(FakeElement("", address="footer.text"), cache, store)
        session.open()
        assert asyncio.run(session.save("x")) is False
        assert session.state is PanelState.ERROR
        assert "footer" in session.status
        assert "home" not in cache
        assert store.writes == []

    def test_retry_after_conflict_reads_fresh(self, cache, store):
        cache.commit("home", CacheEntry({"hero": {"title": "Old"}}, "stale"))
        element = FakeElement("Old")
        session = _session(element, cache, store)
        session.open()

        assert asyncio.run(session.save("New")) is False
        assert session.status == CONFLICT_MESSAGE

        assert asyncio.run(session.save("New")) is True
        assert store.reads == ["home"]
        assert store.writes[-1][2] == "abc"
        assert element.text == "New"

    def test_raw_value_is_sent(self, cache, store):
        raw = 'Tom & "Jerry" <live>'
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        asyncio.run(session.save(raw))
        assert store.writes[0][1]["hero"]["title"] == raw

    def test_save_closed_session_fails(self, cache, store):
        session = _session(FakeElement("Old"), cache, store)
        with pytest.raises(InvalidTransitionError):
            asyncio.run(session.save("New"))

    def test_save_while_saving_is_ignored(self, cache, store):
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        session.state = PanelState.SAVING
        assert asyncio.run(session.save("New")) is False
        assert store.writes == []

    def test_edits_compound_in_working_copy(self, cache, store):
        store.files["home"] = ({"hero": {"title": "Old", "tagline": "Hi"}}, "abc")
        title = _session(FakeElement("Old"), cache, store)
        title.open()
        asyncio.run(title.save("New"))
        tagline = _session(FakeElement("Hi", address="hero.tagline"), cache, store)
        tagline.open()
        asyncio.run(tagline.save("Hello"))
        assert store.writes[-1][1] == {"hero": {"title": "New", "tagline": "Hello"}}


class TestCancel:
    def test_cancel_open(self, cache, store):
        element = FakeElement("Old")
        session = _session(element, cache, store)
        session.open()
        assert session.cancel() is True
        assert session.state is PanelState.CLOSED
        assert element.applied == []
        assert store.reads == []

    def test_cancel_from_error(self, cache, store):
        store.write_error = WriteError("Save failed (500)", 500)
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        asyncio.run(session.save("New"))
        assert session.cancel() is True
        assert session.state is PanelState.CLOSED
        assert session.status == ""

    def test_cancel_refused_while_saving(self, cache, store):
        session = _session(FakeElement("Old"), cache, store)
        session.open()
        session.state = PanelState.SAVING
        assert session.cancel() is False
        assert session.state is PanelState.SAVING
