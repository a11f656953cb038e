"""Locked JSON-file store shared by the JSON repositories.

Each store file holds a JSON list of records. Every read-modify-write runs
under one lock per file (shared by all repository instances in the
process), and files are replaced atomically so a crash mid-write never
leaves half a document behind.
"""

from __future__ import annotations

import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

_LOCKS: dict[Path, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _LOCKS_GUARD:
        return _LOCKS.setdefault(path.resolve(), threading.RLock())


class JsonFileStore:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = _lock_for(file_path)
        self._ensure_file()

    def load(self) -> list[dict]:
        with self._lock:
            return json.loads(self._file_path.read_text(encoding="utf-8"))

    @contextmanager
    def transaction(self) -> Iterator[list[dict]]:
        """Yield the records under the file lock; persist them if no error."""
        with self._lock:
            records = json.loads(self._file_path.read_text(encoding="utf-8"))
            yield records
            self._persist(records)

    # --- File helpers ---------------------------------------------------------

    def _persist(self, records: list[dict]) -> None:
        tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp_path, self._file_path)

    def _ensure_file(self) -> None:
        with self._lock:
            if not self._file_path.exists():
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                self._file_path.write_text("[]", encoding="utf-8")
