"""URL record stored in the frontier and its on-disk serialization."""

import json
from dataclasses import asdict, dataclass
from typing import Optional

MAX_DOCID = 0xFFFFFFFF


@dataclass
class UrlRecord:
    """Represents a discovered URL waiting in the frontier.

    Ordering uses (priority, depth, docid) only; the remaining fields are
    provenance carried along for the crawl controller.
    """
    url: str
    canonical_url: str
    docid: int
    priority: int = 0
    depth: int = 0
    parent_docid: Optional[int] = None
    parent_url: Optional[str] = None
    anchor: Optional[str] = None

    def __post_init__(self):
        if not self.url:
            raise ValueError("url cannot be empty")
        if not self.canonical_url:
            raise ValueError("canonical_url cannot be empty")
        if not 0 <= self.docid <= MAX_DOCID:
            raise ValueError(f"docid must be in [0, {MAX_DOCID}], got {self.docid}")
        if self.priority < 0:
            raise ValueError("priority must be >= 0")
        if self.depth < 0:
            raise ValueError("depth must be >= 0")
        if self.parent_docid is not None and self.parent_docid < 0:
            raise ValueError("parent_docid must be >= 0")

    def to_bytes(self) -> bytes:
        """Serialize to UTF-8 JSON (non-ASCII text kept as-is)."""
        return json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "UrlRecord":
        """Rebuild a record written by to_bytes().

        Raises:
            ValueError: If data is not a serialized record
        """
        try:
            payload = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid record payload: {e}") from e

        if not isinstance(payload, dict):
            raise ValueError("Record payload must be a JSON object")

        try:
            return cls(**payload)
        except TypeError as e:
            raise ValueError(f"Invalid record fields: {e}") from e
