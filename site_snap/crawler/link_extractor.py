# site_snap/crawler/link_extractor.py
"""
Link discovery over the currently rendered page.

The live DOM is serialized by the browser and parsed with BeautifulSoup, so
anchors inserted by scripts are seen too. Hrefs are resolved the way the
browser resolves ``a.href``: against ``<base href>`` when present, otherwise
against the page URL.
"""
from __future__ import annotations

import logging
import re
from typing import Collection, Iterator, List, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_snap.crawler.frontier import is_internal, normalize_url
from site_snap.exceptions import EvaluationError
from site_snap.logger import LOGGER_NAME

__all__ = ("iter_anchors", "discover_key_pages", "discover_internal_links", "KEY_PAGE_TEXTS")

logger = logging.getLogger(LOGGER_NAME)

KEY_PAGE_TEXTS = frozenset({"about", "contact"})
_KEY_PATH_RE = re.compile(r"/(about|contact)")
_PRODUCT_PATH = "/product"
_SKIP_PREFIXES = ("mailto:", "javascript:")


def iter_anchors(html: str, page_url: str) -> Iterator[Tuple[str, str, str]]:
    """Yields ``(raw_href, absolute_href, text)`` for every ``<a href>`` in document order."""
    soup = BeautifulSoup(html, "html.parser")
    base_url = page_url
    base_tag = soup.find("base", href=True)
    if isinstance(base_tag, Tag):
        base_href = base_tag.get("href")
        if isinstance(base_href, str) and base_href.strip():
            base_url = urljoin(page_url, base_href.strip())
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw:
            continue
        try:
            absolute = urljoin(base_url, raw)
        except ValueError:
            continue
        yield raw, absolute, tag.get_text().strip()


async def _read_anchors(page) -> List[Tuple[str, str, str]]:
    html = await page.content()
    return list(iter_anchors(html, page.url))


def _is_key_link(absolute: str, text: str) -> bool:
    text = text.lower()
    if text in KEY_PAGE_TEXTS:
        return True
    href = absolute.lower()
    if _KEY_PATH_RE.search(href):
        return True
    return _PRODUCT_PATH in href and len(text) > 0


async def discover_key_pages(page, max_count: int) -> List[str]:
    """
    Heuristic lookup of About / Contact / Product pages linked from the current page.

    Deduplicated by resolved href, in document order, truncated to *max_count*
    (``-1`` keeps every match). Any failure yields an empty list.
    """
    try:
        anchors = await _read_anchors(page)
    except EvaluationError as exc:
        logger.error("Failed to find key pages: %s", exc)
        return []

    links = list(dict.fromkeys(absolute for _, absolute, text in anchors if _is_key_link(absolute, text)))
    if max_count >= 0:
        links = links[:max_count]
    logger.info(
        "Found %d key pages to capture %s",
        len(links),
        "(unlimited)" if max_count < 0 else f"(limited to {max_count})",
    )
    return links


async def discover_internal_links(page, base_origin: str, visited: Collection[str]) -> List[str]:
    """
    Every same-origin link on the current page, normalized and not yet visited.

    Fragment-only, ``mailto:`` and ``javascript:`` links are skipped. Failure
    degrades to an empty list.
    """
    current = page.url
    try:
        anchors = await _read_anchors(page)
    except EvaluationError as exc:
        logger.warning("Error discovering links on %s: %s", current, exc)
        return []

    links: List[str] = []
    for raw, absolute, _ in anchors:
        if raw.startswith("#") or raw.lower().startswith(_SKIP_PREFIXES):
            continue
        if not is_internal(absolute, base_origin):
            continue
        normalized = normalize_url(absolute, base_origin)
        if normalized is None or normalized in visited:
            continue
        links.append(normalized)
    links = list(dict.fromkeys(links))
    logger.debug("Discovered %d new internal links on %s", len(links), current)
    return links
