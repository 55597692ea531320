# File: tests/conftest.py
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

import pytest

from site_snap.capture.pipeline import CapturePipeline
from site_snap.config import CaptureTimings, RunOptions, SnapConfig
from site_snap.crawler.crawler import CrawlController
from site_snap.crawler.frontier import normalize_url
from site_snap.crawler.models import CrawlSession
from site_snap.exceptions import CaptureError, EvaluationError, NavigationError

SiteT = Union[Dict[str, str], Callable[[str], Optional[str]]]


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line("markers", "browser: needs a real Chromium (SITE_SNAP_BROWSER_TESTS=1)")


def links_page(*hrefs: Union[str, Tuple[str, str]], extra: str = "") -> str:
    """HTML page with one anchor per href; a tuple is ``(href, text)``."""
    anchors = []
    for item in hrefs:
        href, text = item if isinstance(item, tuple) else (item, "link")
        anchors.append(f'<a href="{href}">{text}</a>')
    return f"<html><head>{extra}</head><body>{''.join(anchors)}</body></html>"


class FakePage:
    """
    Scripted stand-in for a browser tab.

    *site* maps URLs (any form, they are normalized) to HTML, or is a callable
    returning HTML for a normalized URL. Unknown URLs fail navigation.
    """

    def __init__(
        self,
        site: SiteT,
        *,
        nav_failures: Optional[Dict[str, Set[str]]] = None,
        screenshot_failures: Iterable[str] = (),
        evaluate_error: bool = False,
        content_error: bool = False,
        hang_scripts: Iterable[str] = (),
        write_files: bool = False,
    ) -> None:
        if callable(site):
            self._lookup = site
        else:
            table = {normalize_url(k): v for k, v in site.items()}
            self._lookup = table.get
        self.nav_failures = {normalize_url(k): v for k, v in (nav_failures or {}).items()}
        self.screenshot_failures = {normalize_url(u) for u in screenshot_failures}
        self.evaluate_error = evaluate_error
        self.content_error = content_error
        self.hang_scripts = set(hang_scripts)
        self.write_files = write_files
        self._url = "about:blank"
        self.gotos: List[Tuple[str, str, int]] = []
        self.evaluations: List[Tuple[str, Any]] = []
        self.screenshots: List[Tuple[Path, bool, int]] = []
        self.screenshot_attempts: List[str] = []

    @property
    def url(self) -> str:
        return self._url

    async def goto(self, url: str, *, wait_until: str, timeout_ms: int) -> None:
        self.gotos.append((url, wait_until, timeout_ms))
        key = normalize_url(url)
        if wait_until in self.nav_failures.get(key, set()):
            raise NavigationError(f"Timeout {timeout_ms}ms exceeded ({wait_until})", url)
        if key is None or self._lookup(key) is None:
            raise NavigationError(f"net::ERR_NAME_NOT_RESOLVED at {url}", url)
        self._url = url

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluations.append((script, arg))
        if script in self.hang_scripts:
            await asyncio.sleep(60)
        if self.evaluate_error:
            raise EvaluationError("Execution context was destroyed", self._url)
        return None

    async def content(self) -> str:
        if self.content_error:
            raise EvaluationError("Target page, context or browser has been closed", self._url)
        return self._lookup(normalize_url(self._url)) or ""

    async def screenshot(self, path: Path, *, full_page: bool = True, timeout_ms: int) -> None:
        self.screenshot_attempts.append(normalize_url(self._url))
        if normalize_url(self._url) in self.screenshot_failures:
            raise CaptureError(f"screenshot {path.name} failed", self._url)
        if self.write_files:
            Path(path).write_bytes(b"\x89PNG\r\n\x1a\n")
        self.screenshots.append((Path(path), full_page, timeout_ms))

    @property
    def scripts(self) -> List[str]:
        return [script for script, _ in self.evaluations]

    def visited_urls(self) -> List[str]:
        """Distinct URLs navigated to, in first-visit order."""
        return list(dict.fromkeys(url for url, _, _ in self.gotos))


class FakeBrowser:
    """Async context manager mirroring PlaywrightBrowser."""

    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.headless: Optional[bool] = None
        self.viewport = None
        self.closed = False

    def __call__(self, *, headless: bool = True) -> FakeBrowser:
        self.headless = headless
        return self

    async def __aenter__(self) -> FakeBrowser:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    async def new_page(self, viewport) -> FakePage:
        self.viewport = viewport
        return self.page


@pytest.fixture()
def fast_config() -> SnapConfig:
    """Default ceilings and rules, but no waiting."""
    return SnapConfig(
        capture=CaptureTimings(
            scroll_step_delay_ms=0,
            image_timeout_ms=0,
            background_timeout_ms=0,
            picture_timeout_ms=0,
            lazy_marker_delay_ms=0,
            settle_delay_ms=0,
            final_scroll_delay_ms=0,
            banner_delay_ms=0,
        )
    )


@pytest.fixture()
def make_session(tmp_path, fast_config):
    def _make(url: str = "https://example.com/", pages: int = 5, crawl: bool = False,
              config: Optional[SnapConfig] = None) -> CrawlSession:
        options = RunOptions(url=url, pages=pages, crawl=crawl)
        return CrawlSession.create(options, config or fast_config, tmp_path)

    return _make


@pytest.fixture()
def make_controller(fast_config):
    def _make(page: FakePage, config: Optional[SnapConfig] = None) -> CrawlController:
        cfg = config or fast_config
        return CrawlController(page, CapturePipeline(cfg.capture, cfg.banners), cfg)

    return _make
