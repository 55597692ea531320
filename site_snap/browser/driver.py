# site_snap/browser/driver.py
"""
Browser driver contract and its Playwright implementation.

The crawler and the capture pipeline only talk to :class:`PageDriver`.
:class:`PlaywrightPage` adapts :mod:`playwright.async_api` to it and translates
Playwright failures into :class:`NavigationError`, :class:`EvaluationError`
and :class:`CaptureError`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal, Optional, Protocol, runtime_checkable

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from site_snap.config import ViewportPreset
from site_snap.exceptions import CaptureError, EvaluationError, NavigationError
from site_snap.logger import LOGGER_NAME

__all__ = ("WaitUntil", "PageDriver", "PlaywrightPage", "PlaywrightBrowser")

WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]


@runtime_checkable
class PageDriver(Protocol):
    """One live browser tab as seen by the crawler."""

    @property
    def url(self) -> str: ...

    async def goto(self, url: str, *, wait_until: WaitUntil, timeout_ms: int) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def content(self) -> str: ...

    async def screenshot(self, path: Path, *, full_page: bool = True, timeout_ms: int) -> None: ...


class PlaywrightPage:
    """:class:`PageDriver` over a Playwright :class:`~playwright.async_api.Page`."""

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, *, wait_until: WaitUntil, timeout_ms: int) -> None:
        # playwright's TimeoutError subclasses its Error
        try:
            await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightError as exc:
            raise NavigationError(f"{wait_until} navigation to {url} failed: {exc.message}", url) from exc

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return await self._page.evaluate(script, arg)
        except PlaywrightError as exc:
            raise EvaluationError(f"in-page evaluation failed: {exc.message}", self._page.url) from exc

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as exc:
            raise EvaluationError(f"could not read page content: {exc.message}", self._page.url) from exc

    async def screenshot(self, path: Path, *, full_page: bool = True, timeout_ms: int) -> None:
        try:
            await self._page.screenshot(path=str(path), full_page=full_page, timeout=timeout_ms)
        except PlaywrightError as exc:
            raise CaptureError(f"screenshot {path.name} failed: {exc.message}", self._page.url) from exc


class PlaywrightBrowser:
    """Launches Chromium on enter and releases everything on exit, whatever happened inside."""

    def __init__(self, *, headless: bool = True) -> None:
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self.logger = logging.getLogger(LOGGER_NAME)

    async def __aenter__(self) -> PlaywrightBrowser:
        self.logger.info("Launching browser (%s)…", "headless" if self.headless else "visible")
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
        except BaseException:
            await self._playwright.stop()
            self._playwright = None
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def new_page(self, viewport: ViewportPreset) -> PlaywrightPage:
        if self._browser is None:
            raise RuntimeError("Browser not launched")
        self._context = await self._browser.new_context(viewport=viewport.as_dict())
        page = await self._context.new_page()
        self.logger.info("Using viewport: %s (%dx%d)", viewport.name, viewport.width, viewport.height)
        return PlaywrightPage(page)

    async def close(self) -> None:
        self.logger.info("Closing browser...")
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        except PlaywrightError as exc:
            self.logger.warning("Error while closing browser: %s", exc.message)
        finally:
            self._context = None
            self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
