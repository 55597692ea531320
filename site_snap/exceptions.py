# File: site_snap/exceptions.py
"""site_snap.exceptions: error taxonomy shared by the driver adapter, the crawler and the CLI."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "SiteSnapError",
    "ArgumentError",
    "OutputDirectoryError",
    "BrowserError",
    "NavigationError",
    "EvaluationError",
    "CaptureError",
]


class SiteSnapError(Exception):
    """Base class for every error raised by SiteSnap."""


class ArgumentError(SiteSnapError, ValueError):
    """Invalid run option (pages, viewport, missing URL). Raised before any browser work."""


class OutputDirectoryError(SiteSnapError, OSError):
    """The output directory could not be created."""


class BrowserError(SiteSnapError):
    """Failure reported by the browser driver for a given URL."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class NavigationError(BrowserError):
    """Navigation timed out or failed at the network level."""


class EvaluationError(BrowserError):
    """An in-page script failed or the page context is gone."""


class CaptureError(BrowserError):
    """The final full-page screenshot could not be written."""
