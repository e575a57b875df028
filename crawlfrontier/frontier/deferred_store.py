"""Deferred-write ordered store used for volatile (non-resumable) crawls.

Keeps the region in memory as a sorted key list plus a dict and writes it
to a JSONL file only on sync() or close(). Writes are fast but anything
since the last sync is lost if the process dies; a graceful close
persists everything.
"""

import base64
import bisect
import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

from .store import OrderedStore, StoreError, StoreTransaction

logger = logging.getLogger(__name__)


class _DeferredTransaction(StoreTransaction):
    """Applies changes immediately; there is nothing to roll back."""

    def __init__(self, store: "DeferredWriteStore"):
        self._store = store

    def put(self, key: bytes, value: bytes) -> None:
        store = self._store
        if key not in store._data:
            bisect.insort(store._keys, key)
        store._data[key] = value
        store._dirty = True

    def delete(self, key: bytes) -> None:
        store = self._store
        if key not in store._data:
            return
        del store._data[key]
        del store._keys[bisect.bisect_left(store._keys, key)]
        store._dirty = True

    def scan(self) -> Iterator[Tuple[bytes, bytes]]:
        keys = self._store._keys
        index = 0
        while index < len(keys):
            key = keys[index]
            yield key, self._store._data[key]
            # Re-locate by key: the caller may have deleted it
            index = bisect.bisect_right(keys, key)


class DeferredWriteStore(OrderedStore):
    """In-memory ordered store persisted to a JSONL file on sync/close."""

    transactional = False

    def __init__(self, folder: str, name: str):
        """Open the region, loading any state left by a previous close.

        Args:
            folder: Directory holding the region file
            name: Region name, also used as file name
        """
        super().__init__(name)
        self.path = Path(folder) / f"{name}.jsonl"
        self._lock = threading.RLock()
        self._keys: List[bytes] = []
        self._data: Dict[bytes, bytes] = {}
        self._dirty = False
        self._closed = False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Failed to create {self.path.parent}: {e}") from e

        self._load()

    def _load(self) -> None:
        """Load persisted entries from disk into memory."""
        if not self.path.exists():
            logger.info(f"No existing frontier file {self.path} - starting fresh")
            return

        try:
            with self.path.open("r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue

                    try:
                        entry = json.loads(line)
                        key = bytes.fromhex(entry["key"])
                        value = base64.b64decode(entry["value"], validate=True)
                    except (ValueError, KeyError, TypeError) as e:
                        logger.error(f"Skipping corrupt frontier line {line_no} in {self.path}: {e}")
                        continue

                    self._data[key] = value
        except OSError as e:
            raise StoreError(f"Failed to load frontier file {self.path}: {e}") from e

        self._keys = sorted(self._data)
        logger.info(f"Loaded {len(self._keys)} frontier entries from {self.path}")

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreError(f"Frontier store {self.name} is closed")

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        with self._lock:
            self._ensure_open()
            yield _DeferredTransaction(self)

    def count(self) -> int:
        with self._lock:
            self._ensure_open()
            return len(self._keys)

    def sync(self) -> None:
        """Persist the region to disk (full rewrite)."""
        with self._lock:
            self._ensure_open()
            if not self._dirty:
                return

            # Write to temp file first (atomic)
            tmp_path = self.path.with_suffix(".tmp")
            try:
                with tmp_path.open("w", encoding="utf-8") as f:
                    for key in self._keys:
                        entry = {
                            "key": key.hex(),
                            "value": base64.b64encode(self._data[key]).decode("ascii"),
                        }
                        f.write(json.dumps(entry, separators=(",", ":")) + "\n")
                tmp_path.replace(self.path)
            except OSError as e:
                raise StoreError(f"Failed to persist frontier file {self.path}: {e}") from e

            self._dirty = False
            logger.info(f"Persisted {len(self._keys)} frontier entries to {self.path}")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            try:
                self.sync()
            finally:
                self._closed = True
                self._keys = []
                self._data = {}
