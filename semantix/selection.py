"""
Range selection over ordered lore entries.

A selection is a (start, end) pair of entry ids marked by the user. Marks are
toggled in either order; a new mark that would leave the pair inverted or
degenerate clears the opposite bound, so a stored selection always satisfies
``start < end`` when both bounds are set.

Everything here is pure: `mark` returns a new `Selection`, and display state
is derived from a selection on demand, never stored.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar, Union


class InvalidEntryIdError(ValueError):
    """Raised when an entry identifier cannot be read as an integer."""


class IncompleteSelectionError(ValueError):
    """Raised when a range is requested from a selection missing a bound."""


class MarkerType(Enum):
    START = "start"
    END = "end"


class DisplayState(Enum):
    """Per-entry classification relative to the current selection."""
    NONE = "none"
    IS_START = "is-start"
    IS_END = "is-end"
    INSIDE_RANGE = "inside-range"
    VALID_START_CANDIDATE = "valid-start-candidate"
    VALID_END_CANDIDATE = "valid-end-candidate"


@dataclass(frozen=True)
class Selection:
    start: Optional[int] = None
    end: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "complete": self.is_complete}


def parse_entry_id(raw: Any) -> int:
    """Parse an entry id coming from the host (usually a string attribute).

    Accepts ints, integral floats and numeric strings. Anything else raises
    `InvalidEntryIdError`.
    """
    # bool is an int subclass; a True/False id is always a caller bug
    if raw is None or isinstance(raw, bool):
        raise InvalidEntryIdError(f"Invalid entry id: {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if raw.is_integer():
            return int(raw)
        raise InvalidEntryIdError(f"Invalid entry id: {raw!r}")
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            raise InvalidEntryIdError(f"Invalid entry id: {raw!r}") from None
    raise InvalidEntryIdError(f"Invalid entry id: {raw!r}")


def _as_marker_type(marker_type: Union[MarkerType, str]) -> MarkerType:
    if isinstance(marker_type, MarkerType):
        return marker_type
    try:
        return MarkerType(str(marker_type).lower())
    except ValueError:
        raise ValueError(f"Unknown marker type: {marker_type!r}") from None


def _require_id(entry_id: Any) -> int:
    if isinstance(entry_id, bool) or not isinstance(entry_id, int):
        raise InvalidEntryIdError(f"Entry id must be an int, got {entry_id!r}")
    return entry_id


def mark(selection: Selection, entry_id: int, marker_type: Union[MarkerType, str]) -> Selection:
    """Apply a start/end mark for `entry_id` and return the new selection.

    Marking the current start (or end) again clears it. Marking a start at or
    after the current end clears the end; marking an end at or before the
    current start clears the start.
    """
    entry_id = _require_id(entry_id)
    marker_type = _as_marker_type(marker_type)
    start, end = selection.start, selection.end

    if marker_type is MarkerType.START:
        if end is not None and end <= entry_id:
            end = None
        start = None if selection.start == entry_id else entry_id
    else:
        if start is not None and start >= entry_id:
            start = None
        end = None if selection.end == entry_id else entry_id

    return Selection(start=start, end=end)


def derive_display_state(selection: Selection, entry_id: int) -> DisplayState:
    entry_id = _require_id(entry_id)
    start, end = selection.start, selection.end

    if start is not None and end is not None:
        if entry_id == start:
            return DisplayState.IS_START
        if entry_id == end:
            return DisplayState.IS_END
        if start < entry_id < end:
            return DisplayState.INSIDE_RANGE
        return DisplayState.NONE

    if start is not None:
        if entry_id == start:
            return DisplayState.IS_START
        if entry_id > start:
            return DisplayState.VALID_END_CANDIDATE
        return DisplayState.NONE

    if end is not None:
        if entry_id == end:
            return DisplayState.IS_END
        if entry_id < end:
            return DisplayState.VALID_START_CANDIDATE
        return DisplayState.NONE

    return DisplayState.NONE


def derive_all(selection: Selection, entry_ids: Iterable[int]) -> Dict[int, DisplayState]:
    """Classify every known entry against `selection` (full re-derivation)."""
    return {entry_id: derive_display_state(selection, entry_id) for entry_id in entry_ids}


T = TypeVar("T")


def extract_range(selection: Selection, ordered_entries: Sequence[T]) -> List[T]:
    """Return the entries whose `uid` lies in [start, end], in collection order.

    Raises:
        IncompleteSelectionError: If either bound is unset.
    """
    if not selection.is_complete:
        raise IncompleteSelectionError(
            f"Selection is incomplete: start={selection.start}, end={selection.end}"
        )
    return [e for e in ordered_entries if selection.start <= e.uid <= selection.end]
