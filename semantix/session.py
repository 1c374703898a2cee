"""
Vectorization session.

A `Session` owns one user's selection over the lore book they have open,
re-derives every entry's display state after each mark, and submits the
selected range to the backend. Sessions are independent of each other; the
HTTP app keeps one per front-end session id in a `SessionManager`.
"""
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from semantix import config, settings_store
from semantix.backend_client import BackendClient, StoreResult, client_for_settings
from semantix.entry_registry import EntryRegistry
from semantix.models.lore_entry import LoreEntry
from semantix.notifications import Notifier
from semantix.selection import (
    DisplayState,
    MarkerType,
    Selection,
    derive_all,
    extract_range,
    mark,
    parse_entry_id,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Dict[str, Any]], BackendClient]


@dataclass
class SelectionSummary:
    """What the settings view shows for a complete selection."""
    start_id: int
    end_id: int
    start_title: str
    end_title: str
    start_excerpt: str
    end_excerpt: str
    entry_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startId": self.start_id,
            "endId": self.end_id,
            "startTitle": self.start_title,
            "endTitle": self.end_title,
            "startExcerpt": self.start_excerpt,
            "endExcerpt": self.end_excerpt,
            "entryCount": self.entry_count,
        }


def collection_name_for(world_name: str) -> str:
    return f"{config.COLLECTION_PREFIX}{world_name}"


class Session:
    def __init__(
        self,
        registry: Optional[EntryRegistry] = None,
        notifier: Optional[Notifier] = None,
        client_factory: ClientFactory = client_for_settings,
    ):
        self.registry = registry or EntryRegistry()
        self.notifier = notifier or Notifier()
        self._client_factory = client_factory
        self._selection = Selection()
        self._display_states: Dict[int, DisplayState] = {}
        self.registry.subscribe(self._on_entry_added)

    @property
    def selection(self) -> Selection:
        return self._selection

    def _on_entry_added(self, entry: LoreEntry) -> None:
        self.refresh_display_states()

    def refresh_display_states(self) -> Dict[int, DisplayState]:
        self._display_states = derive_all(self._selection, self.registry.ids())
        return self._display_states

    def display_states(self) -> Dict[int, DisplayState]:
        """Display state of every known entry against the current selection."""
        return self.refresh_display_states()

    def mark_entry(self, raw_entry_id: Any, marker_type: Union[MarkerType, str]) -> Selection:
        """Apply a start/end mark coming from the UI.

        `raw_entry_id` may be the host's string attribute; it is parsed here.
        """
        entry_id = parse_entry_id(raw_entry_id)
        self._selection = mark(self._selection, entry_id, marker_type)
        self.refresh_display_states()
        marker_name = marker_type.value if isinstance(marker_type, MarkerType) else marker_type
        logger.info(
            f"[SESSION] Set {marker_name} marker for entry {entry_id} -> "
            f"start={self._selection.start}, end={self._selection.end}"
        )
        return self._selection

    def reset(self) -> None:
        """Clear both markers."""
        self._selection = Selection()
        self.refresh_display_states()
        logger.info("[SESSION] Selection reset")

    def selection_summary(self) -> Optional[SelectionSummary]:
        if not self._selection.is_complete:
            return None
        start_entry = self.registry.get(self._selection.start)
        end_entry = self.registry.get(self._selection.end)
        if start_entry is None or end_entry is None:
            return None
        return SelectionSummary(
            start_id=start_entry.uid,
            end_id=end_entry.uid,
            start_title=start_entry.title,
            end_title=end_entry.title,
            start_excerpt=start_entry.excerpt(),
            end_excerpt=end_entry.excerpt(),
            entry_count=len(extract_range(self._selection, self.registry.entries())),
        )

    def settings_view(self, settings: Dict[str, Any] = None) -> Dict[str, Any]:
        """Data for the settings popup."""
        settings = settings or settings_store.load_settings()
        summary = self.selection_summary()
        module_settings = settings["moduleSettings"]
        return {
            "hasSelection": self._selection.is_complete,
            "selectionData": summary.to_dict() if summary else None,
            "moduleSettings": module_settings,
            "providers": settings["embeddingProviders"],
            "defaultProvider": module_settings.get("defaultProvider"),
            "selectedProvider": settings_store.active_provider(settings),
        }

    async def process_selection(self) -> Optional[StoreResult]:
        """Send the selected range to the backend for vectorization.

        Returns None when nothing was sent or the call failed. The selection
        is left as it was either way.
        """
        selection = self._selection
        if not selection.is_complete:
            logger.info("[SESSION] Process requested without a complete selection, ignoring")
            return None

        settings = settings_store.load_settings()
        module_settings = settings["moduleSettings"]
        self.notifier.enabled = bool(module_settings.get("showNotifications", True))

        logger.info(f"[SESSION] Processing entries from {selection.start} to {selection.end}")
        self.notifier.info("Processing selected entries for vectorization...")

        try:
            if not len(self.registry):
                raise ValueError("No world info available")
            entries = extract_range(selection, self.registry.entries())
            client = self._client_factory(settings)
            result = await client.store_entries(
                entries,
                collection_name=collection_name_for(self.registry.name),
                chunk_size=module_settings.get("defaultChunkSize"),
                overlap_size=module_settings.get("defaultOverlapSize"),
            )
        except Exception as e:
            logger.exception(f"[SESSION] Error processing entries: {e}")
            self.notifier.error(f"Failed to process entries: {e}")
            return None

        logger.info(f"[SESSION] Vectorization result: {result.raw}")
        self.notifier.success(
            f"Successfully processed {result.chunks_processed} chunks "
            f"and stored {result.points_stored} vectors"
        )
        return result


class SessionManager:
    """Independent sessions keyed by front-end session id.

    Holds at most `max_sessions`; the least recently used session is evicted
    when a new one would exceed the cap.
    """

    def __init__(self, session_factory: Callable[[], Session] = Session, max_sessions: int = None):
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()
        self._lock = threading.Lock()
        self._factory = session_factory
        self.max_sessions = max_sessions or config.MAX_SESSIONS

    def get(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
                return session

            session = self._factory()
            self._sessions[session_id] = session
            logger.info(f"[SESSION] Created session {session_id}")
            while len(self._sessions) > self.max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info(f"[SESSION] Evicted idle session {evicted_id}")
            return session

    def drop(self, session_id: str) -> bool:
        """Forget a session. Returns False if it was not known."""
        with self._lock:
            dropped = self._sessions.pop(session_id, None) is not None
        if dropped:
            logger.info(f"[SESSION] Dropped session {session_id}")
        return dropped

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
