#!/usr/bin/env python3
"""
Tests for the entry registry and lore book parsing
"""
import pytest

from semantix.entry_registry import EntryRegistry
from semantix.models.lore_entry import LoreEntry, WorldBook
from semantix.selection import InvalidEntryIdError


def test_add_notifies_listeners(world_book):
    registry = EntryRegistry(world_book)
    seen = []
    unsubscribe = registry.subscribe(seen.append)

    entry = LoreEntry(uid=30, content="new")
    registry.add(entry)
    assert seen == [entry]
    assert registry.ids()[-1] == 30

    unsubscribe()
    registry.add(LoreEntry(uid=31))
    assert seen == [entry]


def test_failing_listener_does_not_block_others(world_book):
    registry = EntryRegistry(world_book)
    seen = []

    def broken(entry):
        raise RuntimeError("listener bug")

    registry.subscribe(broken)
    registry.subscribe(seen.append)
    registry.add(LoreEntry(uid=40))
    assert [e.uid for e in seen] == [40]


def test_add_replaces_existing_uid(world_book):
    registry = EntryRegistry(world_book)
    registry.add(LoreEntry(uid=12, content="edited"))
    assert len(registry) == 11
    assert registry.get(12).content == "edited"


def test_world_book_from_host_mapping_is_ordered_by_uid():
    raw = {
        "name": "Eldoria",
        "entries": {
            "2": {"uid": 2, "content": "b", "key": "dragon"},
            "10": {"uid": "10", "content": "c", "disable": False},
            "1": {"uid": 1, "content": "a", "comment": "First"},
        },
    }
    book = WorldBook.from_payload(raw)
    assert [e.uid for e in book.entries] == [1, 2, 10]
    assert book.find(2).key == ["dragon"]
    assert book.find(10).extra == {"disable": False}
    assert book.find(1).title == "First"
    assert book.find(2).title == "Untitled"
    assert book.find(99) is None


def test_world_book_list_keeps_host_order():
    book = WorldBook.from_payload({"name": "x", "entries": [{"uid": 5}, {"uid": 3}]})
    assert [e.uid for e in book.entries] == [5, 3]


def test_entry_without_uid_rejected():
    with pytest.raises(InvalidEntryIdError):
        LoreEntry.from_payload({"content": "orphan"})
