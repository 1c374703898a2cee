"""Registry of the lore entries currently known to a session.

Replaces watching the host's entry list for added nodes: the host (or the
HTTP layer on its behalf) loads the open lore book and reports entries as
they are added; subscribers are told about each added entry.
"""
import logging
from typing import Callable, List, Optional

from semantix.models.lore_entry import LoreEntry, WorldBook

logger = logging.getLogger(__name__)

EntryListener = Callable[[LoreEntry], None]


class EntryRegistry:
    """Ordered set of known entries plus an entry-added notification channel."""

    def __init__(self, world_book: Optional[WorldBook] = None):
        self._book = WorldBook(name="")
        self._listeners: List[EntryListener] = []
        if world_book is not None:
            self.load(world_book)

    @property
    def name(self) -> str:
        return self._book.name

    def load(self, world_book: WorldBook) -> None:
        """Replace the known entries with the given lore book."""
        self._book = WorldBook(name=world_book.name, entries=list(world_book.entries))
        logger.info(f"[REGISTRY] Loaded lore book '{self.name}' with {len(self)} entries")

    def add(self, entry: LoreEntry) -> None:
        """Add an entry (replacing one with the same uid) and notify listeners."""
        entries = self._book.entries
        for i, existing in enumerate(entries):
            if existing.uid == entry.uid:
                entries[i] = entry
                break
        else:
            entries.append(entry)
        logger.debug(f"[REGISTRY] Entry {entry.uid} added to '{self.name}'")

        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception as e:
                logger.error(f"[REGISTRY] Entry listener failed for entry {entry.uid}: {e}")

    def subscribe(self, listener: EntryListener) -> Callable[[], None]:
        """Register an entry-added listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get(self, uid: int) -> Optional[LoreEntry]:
        return self._book.find(uid)

    def entries(self) -> List[LoreEntry]:
        return list(self._book.entries)

    def ids(self) -> List[int]:
        return [e.uid for e in self._book.entries]

    def __len__(self) -> int:
        return len(self._book.entries)
