"""SQLite-backed ordered store used for resumable crawls.

Each region lives in its own database file. The table is declared
``WITHOUT ROWID`` with a BLOB primary key, so the B-tree is ordered by
key bytes and ``ORDER BY key`` walks it directly. Every transaction is
committed with ``synchronous=FULL`` before control returns to the caller.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from .store import OrderedStore, StoreError, StoreTransaction

logger = logging.getLogger(__name__)


class _SqliteTransaction(StoreTransaction):

    def __init__(self, conn: sqlite3.Connection, table: str, scan_batch: int):
        self._conn = conn
        self._table = table
        self._scan_batch = scan_batch
        self._active = True

    def _check_active(self) -> None:
        if not self._active:
            raise StoreError(f"Transaction on {self._table} already finished")

    def put(self, key: bytes, value: bytes) -> None:
        self._check_active()
        self._conn.execute(
            f'INSERT OR REPLACE INTO "{self._table}" (key, value) VALUES (?, ?)',
            (key, value),
        )

    def delete(self, key: bytes) -> None:
        self._check_active()
        self._conn.execute(f'DELETE FROM "{self._table}" WHERE key = ?', (key,))

    def scan(self) -> Iterator[Tuple[bytes, bytes]]:
        # Keyset pagination: each page is fetched completely, so no statement
        # is left open across a yield and deleting the current key is safe.
        last: Optional[bytes] = None
        while True:
            self._check_active()
            if last is None:
                rows = self._conn.execute(
                    f'SELECT key, value FROM "{self._table}" ORDER BY key LIMIT ?',
                    (self._scan_batch,),
                ).fetchall()
            else:
                rows = self._conn.execute(
                    f'SELECT key, value FROM "{self._table}" WHERE key > ? ORDER BY key LIMIT ?',
                    (last, self._scan_batch),
                ).fetchall()

            for key, value in rows:
                yield bytes(key), bytes(value)
                last = key

            if len(rows) < self._scan_batch:
                return

    def finish(self) -> None:
        self._active = False


class SqliteStore(OrderedStore):
    """Transactional ordered store on a local SQLite database."""

    transactional = True

    def __init__(self, folder: str, name: str, scan_batch: int = 256):
        """Open (or create) the region database.

        Args:
            folder: Directory holding the database file
            name: Region name, also used as table and file name
            scan_batch: Rows fetched per page while scanning
        """
        super().__init__(name)
        self.path = Path(folder) / f"{name}.db"
        self._scan_batch = scan_batch
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Autocommit mode: transactions are opened explicitly below
            self._conn = sqlite3.connect(
                str(self.path), isolation_level=None, check_same_thread=False
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=FULL")
            self._conn.execute(
                f'CREATE TABLE IF NOT EXISTS "{name}" '
                "(key BLOB PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID"
            )
        except (sqlite3.Error, OSError) as e:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            raise StoreError(f"Failed to open frontier store {self.path}: {e}") from e

        logger.info(f"Opened resumable frontier store {self.path}")

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(f"Frontier store {self.name} is closed")
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        with self._lock:
            conn = self._connection()
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to begin transaction on {self.name}: {e}") from e

            txn = _SqliteTransaction(conn, self.name, self._scan_batch)
            try:
                yield txn
                txn.finish()
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                txn.finish()
                self._rollback(conn)
                raise StoreError(f"Transaction on {self.name} failed: {e}") from e
            except BaseException:
                txn.finish()
                self._rollback(conn)
                raise

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.error(f"Failed to roll back transaction on {self.name}: {e}")

    def count(self) -> int:
        with self._lock:
            conn = self._connection()
            try:
                (total,) = conn.execute(f'SELECT COUNT(*) FROM "{self.name}"').fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to count entries in {self.name}: {e}") from e
            return total

    def sync(self) -> None:
        """Checkpoint the write-ahead log into the main database file."""
        with self._lock:
            conn = self._connection()
            try:
                conn.execute("PRAGMA wal_checkpoint(FULL)")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to checkpoint {self.path}: {e}") from e

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            conn, self._conn = self._conn, None
            try:
                conn.close()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to close {self.path}: {e}") from e
        logger.info(f"Closed resumable frontier store {self.path}")
