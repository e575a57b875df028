"""Crawl frontier and URL canonicalization for a web crawler."""

from .models import UrlRecord
from .url_tools import canonicalize

__version__ = "0.1.0"

__all__ = ["UrlRecord", "canonicalize", "__version__"]
