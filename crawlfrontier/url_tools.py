"""URL utility functions for canonicalization and validation.

Provides tools for normalizing URLs so that equivalent addresses map to a
single string, which is what the docid registry uses as the dedup identity.
The canonical form is stable: canonicalizing a canonical URL returns it
unchanged.
"""

import re
from typing import Dict, Optional
from urllib.parse import quote, unquote, urljoin, urlsplit


# Schemes we can canonicalize, with the port that is dropped when explicit
DEFAULT_PORTS: Dict[str, int] = {
    "http": 80,
    "https": 443,
    "ftp": 21,
}

# Query parameters carrying session state (compared case-insensitively)
SESSION_PARAMS = frozenset({"jsessionid", "phpsessid", "aspsessionid"})

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_ILLEGAL_PATH_CHARS = re.compile(r'[\x00-\x1f\x7f"<>^`{|}]')
_ILLEGAL_HOST_CHARS = re.compile(r'[\x00-\x20\x7f"<>\\^`{|}%/]')

# urlsplit silently drops these, so they are rejected before splitting
_STRIPPED_BY_SPLIT = re.compile(r"[\t\r\n]")


def canonicalize(reference: str, base: Optional[str] = None) -> Optional[str]:
    """Canonicalize a URL reference for deduplication and link resolution.

    Steps:
    1. Resolve the reference against base, lower-case scheme and host
    2. Normalize the path (backslashes, dot segments, duplicate slashes)
    3. Parse, filter and sort query parameters, dropping session ids
    4. Re-encode parameter names and values per RFC 3986
    5. Drop the default port and the fragment

    Args:
        reference: URL as found in a page, possibly relative
        base: URL of the page the reference was found on (None or "" when
            the reference is already absolute)

    Returns:
        Canonical absolute URL, or None if the reference does not resolve
        to a well-formed URL with a host
    """
    try:
        return _canonicalize(reference, base)
    except ValueError:
        return None


def _canonicalize(reference: str, base: Optional[str]) -> Optional[str]:
    reference = (reference or "").strip()
    base = (base or "").strip()
    if _STRIPPED_BY_SPLIT.search(reference) or _STRIPPED_BY_SPLIT.search(base):
        return None
    if base:
        reference = urljoin(base, reference)

    parts = urlsplit(reference)

    scheme = parts.scheme.lower()
    host = parts.hostname
    if not host or scheme not in DEFAULT_PORTS:
        return None
    if _ILLEGAL_HOST_CHARS.search(host):
        return None

    path = _normalize_path(parts.path)
    query = _canonical_query(parts.query)

    port = parts.port
    if port == DEFAULT_PORTS[scheme]:
        port = None

    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"

    url = f"{scheme}://{netloc}{path}"
    if query:
        url = f"{url}?{query}"
    return url


def _normalize_path(path: str) -> str:
    # Strip first: "/a/.. " must not leave a dot segment behind
    path = _remove_dot_segments(path.replace("\\", "/").strip())

    while "//" in path:
        path = path.replace("//", "/")

    while path.startswith("/../"):
        path = path[3:]

    if not path:
        path = "/"

    path = path.replace("%7E", "~").replace(" ", "%20")
    if _MALFORMED_ESCAPE.search(path) or _ILLEGAL_PATH_CHARS.search(path):
        raise ValueError(f"Invalid URL path: {path!r}")
    return path


def _remove_dot_segments(path: str) -> str:
    """Drop "." segments and fold ".." into the segment before it.

    A ".." with nothing left to fold into is kept, so "/a/../../b" becomes
    "/../b"; the caller strips such leading remnants.
    """
    segments = path.split("/")
    if len(segments) == 1:
        return path

    resolved = []
    for segment in segments[1:]:
        if segment == "..":
            if resolved and resolved[-1] != "..":
                resolved.pop()
            else:
                resolved.append("..")
        elif segment != ".":
            resolved.append(segment)

    # "/a/." and "/a/b/.." both name a directory
    if segments[-1] in (".", ".."):
        resolved.append("")

    return "/" + "/".join(resolved)


def _canonical_query(query: str) -> str:
    """Build the canonical query string.

    Pairs are keyed by their encoded name, so "%61=1&a=2" and "a=2" agree;
    when a name repeats, the last value wins.
    """
    if not query:
        return ""

    params: Dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        name, _, value = pair.partition("=")
        name = _percent_encode_rfc3986(name)
        if name.lower() in SESSION_PARAMS:
            continue
        params[name] = _percent_encode_rfc3986(value)

    encoded = []
    for name in sorted(params):
        value = params[name]
        item = f"{name}={value}" if value else name
        if item:
            encoded.append(item)
    return "&".join(encoded)


def _percent_encode_rfc3986(text: str) -> str:
    """Percent-encode a query component per RFC 3986.

    A literal "+" is kept as a plus sign rather than read as a space.
    Existing escapes are decoded first so nothing is encoded twice.
    """
    text = text.replace("+", "%2B")
    if _MALFORMED_ESCAPE.search(text):
        raise ValueError(f"Malformed percent-encoding: {text!r}")
    return quote(unquote(text, errors="replace"), safe="~")


def is_same_host(url: str, host: str) -> bool:
    """Check if URL belongs to the specified host.

    Args:
        url: URL to check
        host: Expected host (e.g., "example.com")

    Returns:
        True if URL's host matches exactly (case-insensitive)
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    return bool(hostname) and hostname == host.lower()


def is_valid_url(url: str) -> bool:
    """Check if URL has valid structure.

    Args:
        url: URL to validate

    Returns:
        True if URL can be parsed and has a scheme and a host
    """
    try:
        parts = urlsplit(url)
        return bool(parts.scheme and parts.hostname)
    except ValueError:
        return False


def get_url_depth(url: str) -> int:
    """Calculate the depth of a URL based on path segments.

    Args:
        url: URL to analyze

    Returns:
        Number of non-empty path segments (0 for root)
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        return 0
    return len([segment for segment in path.split("/") if segment])
