from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional
from urllib.parse import unquote, urlsplit

from site_snap.capture.pipeline import CapturePipeline
from site_snap.config import SnapConfig
from site_snap.crawler.link_extractor import discover_internal_links, discover_key_pages
from site_snap.crawler.models import CaptureRecord, CrawlMode, CrawlSession
from site_snap.exceptions import CaptureError, NavigationError
from site_snap.logger import LOGGER_NAME

__all__ = ("CrawlController", "page_slug", "discovery_filename", "crawl_filename")

FilenameFn = Callable[[str, CrawlSession], str]

_UNSAFE_RE = re.compile(r'[<>:"|?*\\\s]')


def page_slug(url: str) -> str:
    """``https://x.com/a/b/`` -> ``a-b``; empty for the root path."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    slug = unquote(path).strip("/").replace("/", "-")
    return _UNSAFE_RE.sub("", slug)[:200]


def discovery_filename(url: str, session: CrawlSession) -> str:
    slug = page_slug(url)
    return f"{slug}.png" if slug else f"page-{session.captured}.png"


def crawl_filename(url: str, session: CrawlSession) -> str:
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    stamp = stamp.replace(":", "-").replace(".", "-")
    return f"screenshot_{stamp}_{session.viewport.name}_{session.next_index:03d}.png"


def _homepage_filename(url: str, session: CrawlSession) -> str:
    return "homepage.png"


class CrawlController:
    """
    Drives one browser page through a run.

    Holds only collaborators; all run state lives in the :class:`CrawlSession`
    passed to every operation. Pages are visited strictly one after another.
    """

    def __init__(self, page, pipeline: CapturePipeline, config: Optional[SnapConfig] = None) -> None:
        self.page = page
        self.pipeline = pipeline
        self.config = config or SnapConfig()
        self.logger = logging.getLogger(LOGGER_NAME)

    async def run(self, session: CrawlSession) -> List[CaptureRecord]:
        if session.mode is CrawlMode.CRAWL:
            await self.run_crawl(session)
        else:
            await self.run_discovery(session)
        return session.records

    # ------------------------------------------------------------------ #
    # navigation & single visit                                           #
    # ------------------------------------------------------------------ #

    async def navigate(self, url: str, fallback_timeout_ms: int) -> None:
        """networkidle first; one retry with domcontentloaded. A second failure propagates."""
        nav = self.config.navigation
        try:
            await self.page.goto(url, wait_until="networkidle", timeout_ms=nav.settled_timeout_ms)
        except NavigationError as exc:
            self.logger.warning("Navigation timeout for %s, trying with extended timeout... (%s)", url, exc)
            await self.page.goto(url, wait_until="domcontentloaded", timeout_ms=fallback_timeout_ms)
            self.logger.info("Page loaded with extended timeout")

    async def visit(
        self,
        session: CrawlSession,
        url: str,
        filename_for: FilenameFn,
        fallback_timeout_ms: int,
        *,
        fatal: bool = False,
    ) -> Optional[CaptureRecord]:
        """
        Navigates to *url* and captures it.

        Returns the new record, or ``None`` when the URL was unusable, already
        visited or failed. With ``fatal`` any failure propagates instead.
        """
        normalized = session.normalize(url)
        if normalized is None or normalized in session.visited:
            self.logger.debug("Skipping %s (unusable or already visited)", url)
            return None
        session.visited.add(normalized)

        self.logger.info("[%s] Capturing: %s", session.progress(), url)
        try:
            await self.navigate(url, fallback_timeout_ms)
            filename = filename_for(url, session)
            await self.pipeline.capture(self.page, filename, session.output_dir)
        except NavigationError as exc:
            if fatal:
                self.logger.error("Navigation still failed: %s", exc)
                raise
            self._release(session, normalized, exc)
            return None
        except CaptureError as exc:
            if fatal or self.config.abort_on_capture_error:
                raise
            self._release(session, normalized, exc)
            return None

        record = CaptureRecord(
            url=url,
            normalized_url=normalized,
            filename=filename,
            index=session.next_index,
            viewport=session.viewport.name,
        )
        session.records.append(record)
        self.logger.info("Progress: %s pages captured", session.progress())
        return record

    def _release(self, session: CrawlSession, normalized: str, exc: Exception) -> None:
        """Failed URL becomes eligible again, at most ``max_page_retries`` times."""
        failures = session.failures.get(normalized, 0) + 1
        session.failures[normalized] = failures
        if failures <= self.config.limits.max_page_retries:
            session.visited.discard(normalized)
            self.logger.warning("Failed to capture %s: %s (may be retried)", normalized, exc)
        else:
            self.logger.warning("Failed to capture %s: %s (giving up after %d attempts)", normalized, exc, failures)

    # ------------------------------------------------------------------ #
    # smart discovery                                                     #
    # ------------------------------------------------------------------ #

    async def run_discovery(self, session: CrawlSession) -> None:
        """Homepage, then key pages, then overflow links until the budget is met."""
        nav = self.config.navigation
        limits = self.config.limits
        if session.budget_met:
            self.logger.warning("Page budget is %d, nothing to capture", session.budget)
            return

        self.logger.info("Navigating to homepage...")
        await self.visit(session, session.start_url, _homepage_filename, nav.homepage_fallback_timeout_ms, fatal=True)
        if session.budget_met:
            self.logger.info("Target already reached! %d pages captured.", session.captured)
            return

        key_pages_limit = limits.unbounded_key_pages if session.unbounded else max(1, session.pages - 1)
        key_pages = await discover_key_pages(self.page, key_pages_limit)
        self.logger.info("Targeting %d total pages. Need %d more.", session.budget, session.remaining)

        for url in key_pages:
            if session.budget_met:
                self.logger.info("Reached target limit (%d). Stopped capturing key pages.", session.budget)
                break
            await self.visit(session, url, discovery_filename, nav.page_fallback_timeout_ms)

        if session.budget_met:
            self.logger.info("Completed! Captured %d pages in smart discovery mode.", session.captured)
            return
        await self._capture_overflow(session)
        self.logger.info("Completed! Captured %d pages in smart discovery mode.", session.captured)

    async def _capture_overflow(self, session: CrawlSession) -> None:
        nav = self.config.navigation
        limits = self.config.limits
        self.logger.info("Need %d more pages. Searching for additional links...", session.remaining)

        candidates = await discover_internal_links(self.page, session.base_origin, session.visited)
        cap = limits.discovery_ceiling if session.unbounded else session.remaining + limits.overflow_slack
        candidates = candidates[:cap]
        self.logger.info("Found %d potential pages to capture", len(candidates))

        successes = 0
        consecutive_failures = 0
        for url in candidates:
            if session.budget_met:
                self.logger.info("Target reached (%d pages). Stopping additional captures.", session.budget)
                break
            if session.normalize(url) in session.visited:
                continue
            if await self.visit(session, url, discovery_filename, nav.page_fallback_timeout_ms):
                successes += 1
                consecutive_failures = 0
            else:
                consecutive_failures += 1
            if consecutive_failures >= limits.circuit_breaker:
                self.logger.warning(
                    "Giving up after %d consecutive attempts with no successful captures", consecutive_failures
                )
                break

        if successes:
            self.logger.info("Successfully captured %d additional pages", successes)
        else:
            self.logger.info("No additional pages could be captured from this session")

    # ------------------------------------------------------------------ #
    # full crawl                                                          #
    # ------------------------------------------------------------------ #

    async def run_crawl(self, session: CrawlSession) -> None:
        """Breadth-first over internal links until the frontier empties or the budget is met."""
        nav = self.config.navigation
        self.logger.info("Starting full site crawl from: %s", session.start_url)
        self.logger.info("Target: Up to %d pages", session.budget)

        session.frontier.enqueue(session.normalize(session.start_url) or session.start_url)
        first = True
        while session.frontier and not session.budget_met:
            raw_url = session.frontier.dequeue_next()
            normalized = session.normalize(raw_url)
            if normalized is None or normalized in session.visited:
                continue

            record = await self.visit(session, raw_url, crawl_filename, nav.crawl_fallback_timeout_ms, fatal=first)
            first = False
            if record is None:
                continue

            links = await discover_internal_links(self.page, session.base_origin, session.visited)
            added = session.frontier.extend(links)
            self.logger.debug("Queued %d new links (%d waiting)", added, len(session.frontier))

        self.logger.info("Crawl completed! Captured %d pages.", session.captured)
        self.logger.info("Visited %d unique URLs.", len(session.visited))
