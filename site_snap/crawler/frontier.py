# site_snap/crawler/frontier.py
"""
URL normalization and the crawl frontier.

A normalized URL is the only identity key used for deduplication:
scheme + host (+ non-default port) + path, without query, fragment or trailing slash.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Optional, Set
from urllib.parse import urljoin, urlsplit, urlunsplit

__all__ = ("normalize_url", "is_internal", "origin_of", "Frontier")

_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}


def _netloc(scheme: str, netloc: str, port: Optional[int]) -> str:
    """Lowercased netloc without the scheme's default port (``https://x:443`` is ``https://x``)."""
    netloc = netloc.lower()
    if port is not None and port == _DEFAULT_PORTS.get(scheme):
        netloc = netloc[: netloc.rfind(":")]
    return netloc.rstrip(":")


def normalize_url(url: str, base_origin: str = "") -> Optional[str]:
    """
    Resolve *url* against *base_origin* and canonicalize it.

    Returns ``None`` for malformed or non-http(s) URLs; callers drop those silently.
    """
    try:
        parsed = urlsplit(urljoin(base_origin, url.strip()))
        port = parsed.port  # raises ValueError on a malformed port
    except (ValueError, AttributeError):
        return None
    scheme = parsed.scheme.lower()
    if scheme not in _SCHEMES or not parsed.hostname:
        return None
    path = parsed.path.rstrip("/")
    return urlunsplit((scheme, _netloc(scheme, parsed.netloc, port), path, "", ""))


def origin_of(url: str) -> Optional[str]:
    """``scheme://host[:port]`` of *url*, or ``None`` if it cannot be parsed."""
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except (ValueError, AttributeError):
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    scheme = parsed.scheme.lower()
    return f"{scheme}://{_netloc(scheme, parsed.netloc, port)}"


def is_internal(url: str, base_origin: str) -> bool:
    """True iff *url* has the same origin as *base_origin*. Unparseable URLs are external."""
    origin = origin_of(url)
    return origin is not None and origin == origin_of(base_origin)


class Frontier:
    """
    FIFO queue of raw URLs awaiting a visit.

    Entries are stored as given; the normalized form is only used to refuse
    URLs that are already visited or already waiting.
    """

    def __init__(self, base_origin: str, visited: Set[str]) -> None:
        self.base_origin = base_origin
        self.visited = visited
        self._queue: Deque[str] = deque()
        self._queued: Set[str] = set()

    def enqueue(self, raw_url: str) -> bool:
        """Queue *raw_url* unless its normalized form is visited or queued. Returns True if added."""
        normalized = normalize_url(raw_url, self.base_origin)
        if normalized is None or normalized in self.visited or normalized in self._queued:
            return False
        self._queue.append(raw_url)
        self._queued.add(normalized)
        return True

    def extend(self, raw_urls: Iterable[str]) -> int:
        return sum(1 for url in raw_urls if self.enqueue(url))

    def dequeue_next(self) -> Optional[str]:
        """Oldest queued raw URL, or ``None`` when empty."""
        if not self._queue:
            return None
        raw_url = self._queue.popleft()
        self._queued.discard(normalize_url(raw_url, self.base_origin))
        return raw_url

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)
