"""
Bounded analysis history.

HistoryStore is a value type: every mutation returns a new store and never
touches the entries already held. Persisting a store is the caller's job
(see app.storage.HistoryRepository), so the ordering and eviction rules
here are testable without any I/O.
"""

import json
import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple
from pydantic import TypeAdapter, ValidationError

from app.models import HistoryEntry, normalize_verdict

logger = logging.getLogger(__name__)

# Oldest entries beyond this are evicted on append
HISTORY_LIMIT = 50

ALL_VERDICTS = "all"

_entries_adapter = TypeAdapter(List[HistoryEntry])


class Trend(str, Enum):
    """Bug-count movement relative to the previous analysis."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    FLAT = "flat"
    UNDEFINED = "undefined"


class HistoryStore:
    """Newest-first sequence of at most HISTORY_LIMIT entries."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Sequence[HistoryEntry] = ()):
        self._entries: Tuple[HistoryEntry, ...] = tuple(entries)[:HISTORY_LIMIT]

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HistoryStore):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"HistoryStore({len(self._entries)} entries)"

    def append(self, entry: HistoryEntry) -> "HistoryStore":
        """Prepend an entry, keeping the newest HISTORY_LIMIT."""
        return HistoryStore((entry,) + self._entries[:HISTORY_LIMIT - 1])

    def remove(self, entry_id: str) -> "HistoryStore":
        """Drop the entry with this id. Unknown ids are a no-op."""
        return HistoryStore(e for e in self._entries if e.id != entry_id)

    def clear(self) -> "HistoryStore":
        return HistoryStore()

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def query(self, search_term: str = "", verdict_filter: str = ALL_VERDICTS) -> List[HistoryEntry]:
        """
        Filter entries, preserving order.

        search_term matches inputSummary case-insensitively (empty matches
        everything). verdict_filter is either "all" or a normalized CI
        verdict such as "deploy_blocked"; entries without a verdict only
        match "all".
        """
        needle = (search_term or "").lower()
        matches = []
        for entry in self._entries:
            if needle and needle not in (entry.input_summary or "").lower():
                continue
            if verdict_filter != ALL_VERDICTS:
                verdict = entry.result.verdict
                if verdict is None or verdict != normalize_verdict(verdict_filter):
                    continue
            matches.append(entry)
        return matches

    def to_json(self) -> str:
        """Serialize the whole store for the persistence slot."""
        return _entries_adapter.dump_json(
            list(self._entries), by_alias=True, exclude_unset=True
        ).decode("utf-8")

    @classmethod
    def from_json(cls, text: Optional[str]) -> "HistoryStore":
        """
        Load a persisted store.

        Missing, corrupt, or non-array data yields an empty store. History
        is convenience state, so this never raises.
        """
        if not text:
            return cls()
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Discarding unreadable history: {e}")
            return cls()

        if not isinstance(data, list):
            logger.warning(f"Discarding history: expected array, got {type(data).__name__}")
            return cls()

        try:
            return cls(_entries_adapter.validate_python(data))
        except ValidationError as e:
            logger.warning(f"Discarding history with {e.error_count()} invalid field(s)")
            return cls()


def _bug_count(value: Any) -> Optional[float]:
    """Numeric bug count, None when missing or not a number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            count = float(value)
        except ValueError:
            return None
        return None if count != count else count
    return None


def trend(view: Sequence[HistoryEntry], index: int) -> Trend:
    """
    Compare total_bugs at `index` with the next-older entry in `view`.

    `view` is newest-first, so index + 1 is the previous analysis. Fewer
    bugs than before is DECREASING (an improvement).
    """
    if index < 0 or index + 1 >= len(view):
        return Trend.UNDEFINED

    current = _bug_count(view[index].result.total_bugs)
    previous = _bug_count(view[index + 1].result.total_bugs)
    if current is None or previous is None:
        return Trend.UNDEFINED

    if current < previous:
        return Trend.DECREASING
    if current > previous:
        return Trend.INCREASING
    return Trend.FLAT
