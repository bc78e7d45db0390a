from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from covpolicy import logger
from covpolicy.core.config import DEFAULT_HISTORY_MAX_ENTRIES
from covpolicy.core.history import History, HistoryEntry
from covpolicy.errors import HistoryStoreError


class HistoryStore:
    """JSON file holding ``{"entries": [...]}``, oldest first.

    ``append`` keeps at most ``max_entries`` entries, dropping the oldest.
    Writes go through a temporary file in the same directory and
    ``os.replace``; concurrent writers are not coordinated.
    """

    def __init__(self, path: str | Path, max_entries: int = DEFAULT_HISTORY_MAX_ENTRIES) -> None:
        self.path = Path(path)
        self.max_entries = max_entries if max_entries > 0 else DEFAULT_HISTORY_MAX_ENTRIES

    def load(self) -> History:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return History()
        except OSError as e:
            msg = f"failed to read history {self.path}: {e}"
            raise HistoryStoreError(msg) from e
        try:
            data = json.loads(raw)
            return History.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            msg = f"malformed history file {self.path}: {e}"
            raise HistoryStoreError(msg) from e

    def save(self, history: History) -> None:
        text = json.dumps(history.to_dict(), indent=2, sort_keys=True) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                Path(tmp).replace(self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            msg = f"failed to write history {self.path}: {e}"
            raise HistoryStoreError(msg) from e

    def append(self, entry: HistoryEntry) -> History:
        history = self.load().appended(entry)
        if len(history) > self.max_entries:
            history = History(entries=history.entries[-self.max_entries :])
        self.save(history)
        logger.info("recorded history entry (%d kept in %s)", len(history), self.path)
        return history


__all__ = ["HistoryStore"]
