"""
SearchHistory - Recent search terms persisted to a JSON file.

Keeps the most recent distinct terms first, capped at MAX_ENTRIES.
"""

import json
import logging
import threading
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

MAX_ENTRIES = 10


class SearchHistory:
    """JSON-file backed list of recent search terms."""

    def __init__(self, path: Union[str, Path], max_entries: int = MAX_ENTRIES):
        self.path = Path(path)
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def load(self) -> List[str]:
        """Return stored terms, most recent first. Missing or corrupt file reads as empty."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable search history {self.path}: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed search history {self.path}")
            return []
        return [str(term) for term in data][: self.max_entries]

    def _save(self, entries: List[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(entries[: self.max_entries], ensure_ascii=False),
            encoding="utf-8",
        )

    def add(self, term: str) -> List[str]:
        """Move `term` to the front (deduplicated) and return the updated list."""
        term = term.strip()
        with self._lock:
            history = self.load()
            if not term:
                return history
            entries = [term] + [entry for entry in history if entry != term]
            self._save(entries)
            return entries[: self.max_entries]

    def clear(self) -> None:
        with self._lock:
            self._save([])
