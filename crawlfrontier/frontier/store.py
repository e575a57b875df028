"""Ordered key-value store interface backing the frontier.

A store owns one named region of sorted binary keys. All reads and writes
go through a transaction obtained from ``OrderedStore.transaction()``;
whether that transaction is durable and atomic depends on the
implementation (see ``sqlite_store`` and ``deferred_store``).
"""

import re
from abc import ABC, abstractmethod
from typing import ContextManager, Iterator, Tuple

_REGION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class FrontierError(Exception):
    """Base class for frontier failures."""


class StoreError(FrontierError):
    """Raised when the underlying store fails to read, write or commit."""


class StoreTransaction(ABC):
    """Unit of work on a store region."""

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None:
        """Insert or replace the value stored under key."""

    @abstractmethod
    def delete(self, key: bytes) -> None:
        """Remove key if present."""

    @abstractmethod
    def scan(self) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate over (key, value) pairs in ascending key order.

        Deleting the key just yielded is allowed while iterating.
        """


class OrderedStore(ABC):
    """Named region of sorted binary keys."""

    #: True when every committed transaction survives a process crash
    transactional = False

    def __init__(self, name: str):
        if not _REGION_NAME.match(name or ""):
            raise ValueError(f"Invalid store region name: {name!r}")
        self.name = name

    @abstractmethod
    def transaction(self) -> ContextManager[StoreTransaction]:
        """Open a transaction.

        Commits when the ``with`` block exits normally and aborts when it
        raises. Store failures surface as StoreError.
        """

    def put(self, key: bytes, value: bytes) -> None:
        """Write a single entry in its own transaction."""
        with self.transaction() as txn:
            txn.put(key, value)

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored entries."""

    def sync(self) -> None:
        """Flush buffered writes to disk."""

    @abstractmethod
    def close(self) -> None:
        """Flush and release the region. Closing twice is a no-op."""

    def __enter__(self) -> "OrderedStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
