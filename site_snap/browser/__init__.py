"""site_snap.browser: the browser driver contract and its Playwright adapter."""

from .driver import PageDriver, PlaywrightBrowser, PlaywrightPage, WaitUntil

__all__ = ["PageDriver", "PlaywrightBrowser", "PlaywrightPage", "WaitUntil"]
