#!/usr/bin/env python3
"""
Tests for vectorization sessions: marking, display state, range submission
"""
import asyncio
import logging

import pytest

from semantix import settings_store
from semantix.entry_registry import EntryRegistry
from semantix.models.lore_entry import LoreEntry
from semantix.selection import DisplayState, InvalidEntryIdError, Selection
from semantix.session import Session, SessionManager


def make_session(world_book, backend):
    return Session(registry=EntryRegistry(world_book), client_factory=backend.client_factory)


def test_end_to_end_mark_and_store(world_book, backend):
    """Mark 10 as start and 15 as end, then store exactly entries 10..15"""
    session = make_session(world_book, backend)

    session.mark_entry("10", "start")
    selection = session.mark_entry("15", "end")
    assert selection == Selection(10, 15)

    result = asyncio.run(session.process_selection())
    assert result is not None
    assert result.chunks_processed == 12
    assert result.points_stored == 12

    assert len(backend.requests) == 1
    path, body = backend.requests[0]
    assert path == "/vectorize-and-store"
    assert [e["uid"] for e in body["entries"]] == [10, 11, 12, 13, 14, 15]
    assert body["entries"][0]["content"] == "Lore text for entry 10"
    assert body["collectionName"] == "worldbook_Eldoria"
    assert body["chunkSize"] == 450
    assert body["overlapSize"] == 50


def test_selection_not_reset_after_successful_store(world_book, backend):
    """The same range can be submitted again without re-marking"""
    session = make_session(world_book, backend)
    session.mark_entry(12, "start")
    session.mark_entry(14, "end")

    asyncio.run(session.process_selection())
    assert session.selection == Selection(12, 14)


def test_failed_store_leaves_selection_and_reports_once(world_book, backend):
    backend.store_status = 500
    session = make_session(world_book, backend)
    session.mark_entry(11, "start")
    session.mark_entry(13, "end")

    assert asyncio.run(session.process_selection()) is None
    assert session.selection == Selection(11, 13)

    toasts = session.notifier.drain()
    errors = [t for t in toasts if t.level == "error"]
    assert len(errors) == 1
    assert "status 500" in errors[0].message


def test_process_incomplete_selection_sends_nothing(world_book, backend):
    session = make_session(world_book, backend)
    session.mark_entry(11, "start")
    assert asyncio.run(session.process_selection()) is None
    assert backend.requests == []


def test_notifications_follow_setting(world_book, backend):
    settings_store.update_module_settings({"showNotifications": False})
    session = make_session(world_book, backend)
    session.mark_entry(10, "start")
    session.mark_entry(11, "end")

    assert asyncio.run(session.process_selection()) is not None
    assert session.notifier.drain() == []


def test_success_notification_reports_counts(world_book, backend):
    session = make_session(world_book, backend)
    session.mark_entry(10, "start")
    session.mark_entry(11, "end")
    asyncio.run(session.process_selection())

    toasts = session.notifier.drain()
    assert [t.level for t in toasts] == ["info", "success"]
    assert toasts[1].message == "Successfully processed 4 chunks and stored 4 vectors"


def test_display_states_recomputed_for_all_entries(world_book, backend):
    session = make_session(world_book, backend)
    session.mark_entry("14", "end")
    states = session.display_states()
    assert len(states) == 11
    assert states[14] is DisplayState.IS_END
    assert states[10] is DisplayState.VALID_START_CANDIDATE
    assert states[20] is DisplayState.NONE

    session.mark_entry("12", "start")
    states = session.display_states()
    assert states[13] is DisplayState.INSIDE_RANGE
    assert states[10] is DisplayState.NONE


def test_added_entry_gets_display_state(world_book, backend):
    """Entries reported after marking are classified against the current selection"""
    session = make_session(world_book, backend)
    session.mark_entry(15, "start")
    session.registry.add(LoreEntry(uid=25, content="late addition"))
    assert session.display_states()[25] is DisplayState.VALID_END_CANDIDATE


def test_mark_rejects_malformed_id(world_book, backend):
    session = make_session(world_book, backend)
    session.mark_entry(10, "start")
    with pytest.raises(InvalidEntryIdError):
        session.mark_entry("ten", "end")
    assert session.selection == Selection(10, None)


def test_reset_clears_selection(world_book, backend):
    session = make_session(world_book, backend)
    session.mark_entry(10, "start")
    session.mark_entry(12, "end")
    session.reset()
    assert session.selection == Selection()
    assert set(session.display_states().values()) == {DisplayState.NONE}


def test_selection_summary(world_book, backend):
    world_book.entries[0].content = "x" * 150
    world_book.entries[2].comment = ""
    session = make_session(world_book, backend)
    assert session.selection_summary() is None

    session.mark_entry(10, "start")
    session.mark_entry(12, "end")
    summary = session.selection_summary()
    assert summary.start_title == "Entry 10"
    assert summary.end_title == "Untitled"
    assert summary.start_excerpt == "x" * 100 + "..."
    assert summary.end_excerpt == "Lore text for entry 12"
    assert summary.entry_count == 3


def test_settings_view(world_book, backend):
    session = make_session(world_book, backend)
    view = session.settings_view()
    assert view["hasSelection"] is False
    assert view["selectionData"] is None
    assert view["defaultProvider"] == "bananabread"
    assert view["selectedProvider"]["modelName"] == "mixedbread-ai/mxbai-embed-large-v1"

    session.mark_entry(10, "start")
    session.mark_entry(11, "end")
    view = session.settings_view()
    assert view["hasSelection"] is True
    assert view["selectionData"]["entryCount"] == 2


def test_sessions_are_independent():
    manager = SessionManager()
    first = manager.get("a")
    second = manager.get("b")
    first.mark_entry(3, "start")
    assert second.selection == Selection()
    assert manager.get("a") is first


def test_least_recently_used_session_evicted():
    """The manager holds a bounded number of sessions"""
    manager = SessionManager(max_sessions=2)
    first = manager.get("a")
    manager.get("b")
    assert manager.get("a") is first
    manager.get("c")

    assert len(manager) == 2
    assert "b" not in manager
    assert "a" in manager
    assert "c" in manager


def test_drop_forgets_session():
    manager = SessionManager()
    manager.get("a").mark_entry(3, "start")
    assert manager.drop("a") is True
    assert manager.drop("a") is False
    assert manager.get("a").selection == Selection()


def test_store_result_logged(world_book, backend, caplog):
    session = make_session(world_book, backend)
    session.mark_entry(10, "start")
    session.mark_entry(11, "end")
    with caplog.at_level(logging.INFO, logger="semantix.session"):
        result = asyncio.run(session.process_selection())
    assert result.raw == {"chunksProcessed": 4, "pointsStored": 4}
    assert "Vectorization result" in caplog.text
