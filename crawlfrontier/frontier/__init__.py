"""Durable, priority-ordered URL frontier."""

from .crawl_frontier import DEFAULT_QUEUE_NAME, CrawlFrontier, open_store
from .deferred_store import DeferredWriteStore
from .keys import KEY_LENGTH, MAX_DEPTH_BYTE, decode_key, encode_key
from .sqlite_store import SqliteStore
from .store import FrontierError, OrderedStore, StoreError, StoreTransaction

__all__ = [
    "CrawlFrontier",
    "DEFAULT_QUEUE_NAME",
    "DeferredWriteStore",
    "FrontierError",
    "KEY_LENGTH",
    "MAX_DEPTH_BYTE",
    "OrderedStore",
    "SqliteStore",
    "StoreError",
    "StoreTransaction",
    "decode_key",
    "encode_key",
    "open_store",
]
