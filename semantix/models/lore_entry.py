"""Lore entry and lore book models.

This module defines the `LoreEntry` and `WorldBook` dataclasses used to hold
the host's world info entries in a host-agnostic shape. Identifiers are parsed
to integers once, when the entry is built from the host payload.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from semantix.selection import parse_entry_id

# Host fields mapped onto dedicated attributes; everything else goes to `extra`.
_KNOWN_FIELDS = ("uid", "content", "comment", "key")


@dataclass
class LoreEntry:
    """A single world info entry.

    Attributes:
        uid: Numeric entry identifier, unique within its lore book.
        content: Entry text sent to the backend for vectorization.
        comment: Entry title as shown by the host (may be empty).
        key: Activation keywords of the entry.
        extra: Any other host fields, preserved so the backend receives
               the full record.
    """
    uid: int
    content: str = ""
    comment: str = ""
    key: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.comment or "Untitled"

    def excerpt(self, limit: int = 100) -> str:
        """Return the content truncated to `limit` chars with a trailing ellipsis."""
        if len(self.content) > limit:
            return self.content[:limit] + "..."
        return self.content

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "LoreEntry":
        """Build an entry from a host payload, parsing `uid` to an int."""
        keys = raw.get("key") or []
        if isinstance(keys, str):
            keys = [keys]
        return cls(
            uid=parse_entry_id(raw.get("uid")),
            content=raw.get("content") or "",
            comment=raw.get("comment") or "",
            key=list(keys),
            extra={k: v for k, v in raw.items() if k not in _KNOWN_FIELDS},
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        payload.update({
            "uid": self.uid,
            "content": self.content,
            "comment": self.comment,
            "key": list(self.key),
        })
        return payload


@dataclass
class WorldBook:
    """An ordered lore book.

    Attributes:
        name: Lore book name as known by the host; used to derive the
              backend collection name.
        entries: Entries in host order.
    """
    name: str
    entries: List[LoreEntry] = field(default_factory=list)

    def find(self, uid: int) -> Optional[LoreEntry]:
        for entry in self.entries:
            if entry.uid == uid:
                return entry
        return None

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "WorldBook":
        """Build a lore book from `{"name": ..., "entries": [...] | {uid: {...}}}`.

        The host stores entries as a uid-keyed mapping; those are ordered by uid.
        """
        raw_entries = raw.get("entries") or []
        if isinstance(raw_entries, dict):
            entries = [LoreEntry.from_payload(e) for e in raw_entries.values()]
            entries.sort(key=lambda e: e.uid)
        else:
            entries = [LoreEntry.from_payload(e) for e in raw_entries]
        return cls(name=str(raw.get("name") or ""), entries=entries)
