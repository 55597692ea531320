# File: site_snap/engine.py
"""site_snap.engine: run driver – output directory, browser lifecycle, mode dispatch."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from site_snap.browser import PlaywrightBrowser
from site_snap.capture.pipeline import CapturePipeline
from site_snap.config import RunOptions, SnapConfig
from site_snap.crawler.crawler import CrawlController
from site_snap.crawler.models import CrawlMode, CrawlSession
from site_snap.exceptions import OutputDirectoryError
from site_snap.logger import logger

__all__ = ["timestamped_output_dir", "prepare_output_dir", "start_capture"]

BrowserFactory = Callable[..., PlaywrightBrowser]


def timestamped_output_dir(base_dir: Path | str, now: Optional[datetime] = None) -> Path:
    """``<base_dir>/capture_YYYY-MM-DD_HH-MM-SS``."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    return Path(base_dir) / f"capture_{stamp}"


def prepare_output_dir(path: Path | str) -> Path:
    """Creates the run directory. Without it nothing can be saved, so failure is fatal."""
    p = Path(path).expanduser()
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Failed to create output directory %s: %s", p, exc)
        raise OutputDirectoryError(f"Failed to create output directory {p}: {exc}") from exc
    return p


async def start_capture(
    options: RunOptions,
    config: Optional[SnapConfig] = None,
    *,
    browser_factory: BrowserFactory = PlaywrightBrowser,
) -> CrawlSession:
    """
    Runs one capture session end to end and returns it.

    The browser is released on every path; fatal errors (start page
    unreachable, homepage screenshot failure, output directory) propagate.
    """
    config = config or SnapConfig()
    output_dir = options.output_dir or timestamped_output_dir(config.screenshots_dir)
    session = CrawlSession.create(options, config, output_dir)

    logger.info("Starting screenshot automation...")
    logger.info("URL: %s", options.url)
    logger.info("Output directory: %s", output_dir)
    logger.info("Pages to capture: %s", "unlimited" if options.unbounded else options.pages)
    logger.info(
        "Mode: %s", "Full crawler mode" if session.mode is CrawlMode.CRAWL else "Smart discovery mode"
    )
    logger.info("Viewport: %s (%dx%d)", options.viewport.name, options.viewport.width, options.viewport.height)

    prepare_output_dir(output_dir)

    async with browser_factory(headless=options.headless) as browser:
        page = await browser.new_page(options.viewport)
        pipeline = CapturePipeline(config.capture, config.banners)
        controller = CrawlController(page, pipeline, config)
        await controller.run(session)

    logger.info("Screenshots saved to: %s", output_dir.resolve())
    return session
