"""
Key-value persistence for dashboard state.

Each key is a single file under the data directory. History is
best-effort convenience state: read and write failures are logged and
swallowed, and the in-memory store stays authoritative for the session.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from app.history import HistoryStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "testpilot_history"

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage:
    """Named string slots backed by files in one directory."""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the slot is empty."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a crash never leaves a half-written slot
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class HistoryRepository:
    """Loads and saves a HistoryStore through a single storage slot."""

    def __init__(self, storage: KeyValueStorage, key: str = HISTORY_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> HistoryStore:
        try:
            text = self.storage.get(self.key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read history - starting empty: {e}")
            return HistoryStore()
        store = HistoryStore.from_json(text)
        logger.info(f"Loaded {len(store)} history entries")
        return store

    def save(self, store: HistoryStore) -> bool:
        """Persist the store. Returns False (and logs) on failure."""
        try:
            self.storage.set(self.key, store.to_json())
            return True
        except OSError as e:
            logger.warning(f"Could not persist history ({len(store)} entries): {e}")
            return False
