# File: site_snap/capture/banners.py
"""
Consent-banner suppression.

The rules are plain data (:class:`BannerRules`) and a single generic in-page
script applies them, so a tuning file can swap selectors or keywords without
touching code.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from site_snap.exceptions import EvaluationError
from site_snap.logger import LOGGER_NAME

__all__ = ["BannerRules", "DEFAULT_SELECTORS", "DEFAULT_TEXT_PAIRS", "SUPPRESS_BANNERS_JS", "suppress_banners"]

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_SELECTORS: Tuple[str, ...] = (
    '[data-testid="cookie-banner"]',
    '[id*="cookie"]',
    '[class*="cookie"]',
    '[id*="consent"]',
    '[class*="consent"]',
    '[id*="gdpr"]',
    '[class*="gdpr"]',
    'button[id*="accept"]',
    'button[class*="accept"]',
    'button[id*="agree"]',
    'button[class*="agree"]',
    ".fc-consent-root",
    "#cmp-container",
    ".cookie-banner",
    ".consent-banner",
    ".gdpr-banner",
)

DEFAULT_TEXT_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("accept", "cookie"),
    ("consent", "data"),
    ("gdpr", "privacy"),
)


class BannerRules(BaseModel):
    """Declarative description of what a consent banner looks like."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    selectors: List[str] = Field(default_factory=lambda: list(DEFAULT_SELECTORS))
    text_pairs: List[Tuple[str, str]] = Field(default_factory=lambda: list(DEFAULT_TEXT_PAIRS))
    # elements with more text than this are page content, not banners
    max_text_length: int = Field(1000, ge=0)
    bottom_margin_px: int = Field(150, ge=0)
    max_height_px: int = Field(200, ge=0)

    def as_script_arg(self) -> Dict[str, Any]:
        return {
            "selectors": list(self.selectors),
            "textPairs": [list(pair) for pair in self.text_pairs],
            "maxTextLength": self.max_text_length,
            "bottomMargin": self.bottom_margin_px,
            "maxHeight": self.max_height_px,
        }


SUPPRESS_BANNERS_JS = r"""
(rules) => {
  const hide = (el) => {
    el.style.setProperty('display', 'none', 'important');
    el.style.setProperty('visibility', 'hidden', 'important');
    el.style.setProperty('opacity', '0', 'important');
  };
  const hits = { selector: 0, text: 0, geometry: 0 };

  for (const selector of rules.selectors) {
    let found = [];
    try { found = document.querySelectorAll(selector); } catch (e) { continue; }
    found.forEach(el => { hide(el); hits.selector++; });
  }

  const skip = new Set(['HTML', 'BODY', 'HEAD', 'SCRIPT', 'STYLE']);
  document.querySelectorAll('body *').forEach(el => {
    if (skip.has(el.tagName)) return;
    const text = (el.textContent || '').toLowerCase();
    if (text.length > rules.maxTextLength) return;
    if (rules.textPairs.some(([a, b]) => text.includes(a) && text.includes(b))) {
      hide(el);
      hits.text++;
    }
  });

  document.querySelectorAll('body *').forEach(el => {
    const cs = getComputedStyle(el);
    if (cs.position !== 'fixed' && cs.position !== 'sticky') return;
    const rect = el.getBoundingClientRect();
    if (rect.bottom > window.innerHeight - rules.bottomMargin && rect.height < rules.maxHeight) {
      hide(el);
      hits.geometry++;
    }
  });
  return hits;
}
"""


async def suppress_banners(page, rules: BannerRules) -> Dict[str, int]:
    """Hide consent banners on the live page. Best effort: failures are logged, never raised."""
    try:
        hits = await page.evaluate(SUPPRESS_BANNERS_JS, rules.as_script_arg())
    except EvaluationError as exc:
        logger.warning("Could not remove cookie banners: %s", exc)
        return {}
    hits = hits or {}
    logger.debug(
        "Banner suppression: %s by selector, %s by text, %s by geometry",
        hits.get("selector", 0), hits.get("text", 0), hits.get("geometry", 0),
    )
    return hits
