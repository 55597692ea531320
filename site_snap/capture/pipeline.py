# File: site_snap/capture/pipeline.py
"""
Capture-readiness protocol and the final full-page screenshot.

Order of steps:

1. scroll through the page to trigger lazy loading;
2. image settlement – four bounded probes joined together;
3. settle delay, second scroll to the bottom, short delay;
4. consent-banner suppression;
5. short delay and the screenshot.

Only step 5 may fail the capture; everything before it is best effort.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from site_snap.capture.banners import BannerRules, suppress_banners
from site_snap.config import CaptureTimings
from site_snap.exceptions import CaptureError, EvaluationError
from site_snap.logger import LOGGER_NAME

__all__ = ("CapturePipeline", "LAZY_MARKERS")

logger = logging.getLogger(LOGGER_NAME)

LAZY_MARKERS = (
    "[data-src]",
    "[data-lazy-src]",
    "[data-original]",
    "[data-srcset]",
    ".lazy",
    ".lazyload",
    '[loading="lazy"]',
    "[data-background-image]",
)

SCROLL_THROUGH_JS = r"""
async ({ stepDelay, stepRatio }) => {
  const scrollHeight = document.body.scrollHeight;
  const step = Math.max(1, window.innerHeight * stepRatio);
  for (let y = 0; y < scrollHeight; y += step) {
    window.scrollTo(0, y);
    await new Promise(r => setTimeout(r, stepDelay));
  }
  window.scrollTo(0, 0);
}
"""

SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"

IMG_PROBE_JS = r"""
async (timeout) => {
  const waits = Array.from(document.querySelectorAll('img')).map(img => {
    if (img.complete) return Promise.resolve();
    return new Promise(resolve => {
      img.addEventListener('load', resolve, { once: true });
      img.addEventListener('error', resolve, { once: true });
      setTimeout(resolve, timeout);
    });
  });
  await Promise.all(waits);
  return waits.length;
}
"""

BACKGROUND_PROBE_JS = r"""
async (timeout) => {
  const els = document.querySelectorAll('[style*="background-image"], [data-bg]');
  const waits = Array.from(els).map(el => new Promise(resolve => {
    const bg = getComputedStyle(el).backgroundImage;
    const m = bg && bg !== 'none' ? bg.match(/url\(["']?([^"')]+)["']?\)/) : null;
    if (!m) { resolve(); return; }
    const probe = new Image();
    probe.onload = resolve;
    probe.onerror = resolve;
    setTimeout(resolve, timeout);
    probe.src = m[1];
  }));
  await Promise.all(waits);
  return waits.length;
}
"""

PICTURE_PROBE_JS = r"""
async (timeout) => {
  const waits = [];
  document.querySelectorAll('picture').forEach(picture => {
    picture.querySelectorAll('source').forEach(source => {
      const first = (source.srcset || '').split(',')[0].trim().split(' ')[0];
      if (!first) return;
      waits.push(new Promise(resolve => {
        const probe = document.createElement('img');
        probe.onload = resolve;
        probe.onerror = resolve;
        setTimeout(resolve, timeout);
        probe.src = first;
      }));
    });
  });
  await Promise.all(waits);
  return waits.length;
}
"""

LAZY_MARKER_COUNT_JS = r"""
(selectors) => selectors.reduce((n, s) => n + document.querySelectorAll(s).length, 0)
"""


def _seconds(ms: int) -> float:
    return ms / 1000


class CapturePipeline:
    """Makes the current page screenshot-ready and writes one PNG."""

    def __init__(self, timings: Optional[CaptureTimings] = None, banners: Optional[BannerRules] = None) -> None:
        self.timings = timings or CaptureTimings()
        self.banners = banners or BannerRules()

    async def capture(self, page, filename: str, output_dir: Path, timeout_ms: Optional[int] = None) -> Path:
        """
        Runs the readiness protocol and takes a full-page screenshot.

        Raises :class:`CaptureError` only if the screenshot itself fails.
        """
        t = self.timings
        path = Path(output_dir) / filename
        logger.info("Preparing screenshot: %s", filename)

        await self.trigger_lazy_load(page)
        await self.settle_images(page)

        await asyncio.sleep(_seconds(t.settle_delay_ms))
        await self._evaluate_quietly(page, SCROLL_TO_BOTTOM_JS, None, "final scroll")
        await asyncio.sleep(_seconds(t.final_scroll_delay_ms))

        await suppress_banners(page, self.banners)
        await asyncio.sleep(_seconds(t.banner_delay_ms))

        logger.debug("Taking screenshot %s", path)
        try:
            await page.screenshot(path, full_page=True, timeout_ms=timeout_ms or t.screenshot_timeout_ms)
        except CaptureError as exc:
            logger.error("Failed to take screenshot %s: %s", filename, exc)
            raise
        logger.info("Screenshot saved: %s", path)
        return path

    async def trigger_lazy_load(self, page) -> None:
        arg = {"stepDelay": self.timings.scroll_step_delay_ms, "stepRatio": self.timings.scroll_step_ratio}
        await self._evaluate_quietly(page, SCROLL_THROUGH_JS, arg, "scroll through page")

    async def settle_images(self, page) -> Dict[str, Any]:
        """
        Waits for images with four independent probes joined together.

        Every probe has its own ceiling and is cancelled when it overruns;
        a failing or cancelled probe never fails the step.
        """
        t = self.timings
        probes = {
            "img": self._probe(page, IMG_PROBE_JS, t.image_timeout_ms),
            "background": self._probe(page, BACKGROUND_PROBE_JS, t.background_timeout_ms),
            "picture": self._probe(page, PICTURE_PROBE_JS, t.picture_timeout_ms),
            "lazy": self._lazy_marker_wait(page),
        }
        results = await asyncio.gather(*probes.values(), return_exceptions=True)
        outcome: Dict[str, Any] = {}
        for name, result in zip(probes, results):
            if isinstance(result, asyncio.TimeoutError):
                logger.debug("Image probe %s hit its ceiling", name)
            elif isinstance(result, Exception):
                logger.debug("Image probe %s failed: %s", name, result)
            outcome[name] = result
        return outcome

    async def _probe(self, page, script: str, timeout_ms: int) -> Any:
        ceiling = _seconds(timeout_ms + self.timings.probe_grace_ms)
        return await asyncio.wait_for(page.evaluate(script, timeout_ms), timeout=ceiling)

    async def _lazy_marker_wait(self, page) -> int:
        # lazy loaders cannot be observed, give them a fixed head start
        count = await asyncio.wait_for(
            page.evaluate(LAZY_MARKER_COUNT_JS, list(LAZY_MARKERS)),
            timeout=_seconds(self.timings.probe_grace_ms),
        )
        if count:
            await asyncio.sleep(_seconds(self.timings.lazy_marker_delay_ms))
        return count or 0

    @staticmethod
    async def _evaluate_quietly(page, script: str, arg: Any, step: str) -> None:
        try:
            await page.evaluate(script, arg)
        except EvaluationError as exc:
            logger.warning("Could not %s: %s", step, exc)
