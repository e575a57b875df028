"""Persistent priority queue of URLs waiting to be crawled.

Records are stored under 6-byte (priority, depth, docid) keys, so a scan of
the store in key order is the crawl order:
- Lower priority numbers first
- Then lower depth (breadth-first within a priority tier)
- Then lower docid (earlier discovery)

The frontier trusts the docid registry for uniqueness and does no
deduplication of its own.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from ..config import FrontierConfig
from ..models import UrlRecord
from .deferred_store import DeferredWriteStore
from .keys import encode_key
from .sqlite_store import SqliteStore
from .store import OrderedStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_NAME = "pending_urls"


def open_store(folder: Union[str, Path], name: str = DEFAULT_QUEUE_NAME,
               resumable: bool = False) -> OrderedStore:
    """Open the store region matching the durability mode.

    Args:
        folder: Directory holding the store files
        name: Region name (one region per logical queue)
        resumable: True for transactional, crash-safe writes; False for
            deferred writes that only persist on close

    Returns:
        SqliteStore when resumable, DeferredWriteStore otherwise
    """
    if resumable:
        return SqliteStore(str(folder), name)
    return DeferredWriteStore(str(folder), name)


class CrawlFrontier:
    """Ordered work queue shared by crawl workers.

    One lock serializes every operation, so an enqueue never lands in the
    middle of a peek or delete traversal.
    """

    def __init__(self, store: OrderedStore):
        """Initialize the frontier on an open store region.

        Args:
            store: Store region owned by this frontier (closed by close())
        """
        self._store = store
        self._lock = threading.RLock()

        # Statistics
        self.urls_added = 0
        self.urls_peeked = 0
        self.urls_deleted = 0

        logger.info(
            f"Crawl frontier initialized on {store.name} "
            f"({'resumable' if store.transactional else 'volatile'}): "
            f"{self.length()} URLs in queue"
        )

    @classmethod
    def from_config(cls, config: FrontierConfig) -> "CrawlFrontier":
        store = open_store(
            config.get_storage_path(),
            config.storage.queue_name,
            resumable=config.resumable,
        )
        return cls(store)

    @property
    def resumable(self) -> bool:
        return self._store.transactional

    # =========================================================================
    # Queue operations
    # =========================================================================

    def enqueue(self, record: UrlRecord) -> None:
        """Add a record under its (priority, depth, docid) key.

        In resumable mode the write is committed before this returns.

        Raises:
            StoreError: If the write or commit fails
        """
        key = encode_key(record)
        value = record.to_bytes()

        with self._lock:
            self._store.put(key, value)
            self.urls_added += 1

        logger.debug(f"Enqueued docid={record.docid} key={key.hex()} url={record.canonical_url}")

    def enqueue_all(self, records: Iterable[UrlRecord]) -> int:
        """Add several records in a single transaction.

        Returns:
            Number of records written
        """
        entries = [(encode_key(record), record.to_bytes()) for record in records]
        if not entries:
            return 0

        with self._lock:
            with self._store.transaction() as txn:
                for key, value in entries:
                    txn.put(key, value)
            self.urls_added += len(entries)

        logger.debug(f"Enqueued batch of {len(entries)} URLs")
        return len(entries)

    def peek_batch(self, max_count: int) -> List[UrlRecord]:
        """Return up to max_count records in crawl order without removing them.

        Entries with an empty value are skipped and do not count.

        Raises:
            StoreError: If the read fails or a stored record is corrupt
        """
        results: List[UrlRecord] = []
        if max_count <= 0:
            return results

        with self._lock:
            with self._store.transaction() as txn:
                for key, value in txn.scan():
                    if not value:
                        continue
                    results.append(self._decode(key, value))
                    if len(results) >= max_count:
                        break
            self.urls_peeked += len(results)

        return results

    def delete_batch(self, count: int) -> int:
        """Remove the first count entries in crawl order.

        Returns:
            Number of entries removed (fewer than count if the queue is shorter)

        Raises:
            StoreError: If the delete or commit fails
        """
        if count <= 0:
            return 0

        deleted = 0
        with self._lock:
            with self._store.transaction() as txn:
                for key, _ in txn.scan():
                    txn.delete(key)
                    deleted += 1
                    if deleted >= count:
                        break
            self.urls_deleted += deleted

        logger.debug(f"Deleted {deleted} URLs from {self._store.name}")
        return deleted

    def _decode(self, key: bytes, value: bytes) -> UrlRecord:
        try:
            return UrlRecord.from_bytes(value)
        except ValueError as e:
            raise StoreError(f"Corrupt frontier record under key {key.hex()}: {e}") from e

    # =========================================================================
    # Bookkeeping
    # =========================================================================

    def length(self) -> int:
        """Get current frontier size.

        Returns:
            Number of stored entries, or -1 if the store could not be read
        """
        try:
            with self._lock:
                return self._store.count()
        except Exception as e:
            logger.error(f"Error reading frontier length of {self._store.name}: {e}")
            return -1

    def is_empty(self) -> bool:
        """Check if frontier is empty."""
        return self.length() == 0

    def get_stats(self) -> Dict[str, Any]:
        """Get frontier statistics."""
        return {
            "queue": self._store.name,
            "mode": "resumable" if self.resumable else "volatile",
            "length": self.length(),
            "urls_added": self.urls_added,
            "urls_peeked": self.urls_peeked,
            "urls_deleted": self.urls_deleted,
        }

    def close(self) -> None:
        """Close the frontier and release the store (best effort)."""
        logger.info("Closing crawl frontier...")
        with self._lock:
            try:
                self._store.close()
                logger.info(
                    f"Frontier stats - Added: {self.urls_added}, "
                    f"Deleted: {self.urls_deleted}"
                )
            except Exception as e:
                logger.error(f"Error closing frontier store {self._store.name}: {e}")

    def __enter__(self) -> "CrawlFrontier":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
