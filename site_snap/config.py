# === FILE: site_snap/config.py ===
"""
Loading and validation of SiteSnap settings.

Two layers are kept apart:

* :class:`RunOptions` – what to capture (URL, pages, mode, viewport), built by
  the CLI from flags and environment variables;
* :class:`SnapConfig` – how to capture (timings, ceilings, banner rules), with
  defaults that can be overridden from a YAML or JSON file.

Pydantic describes both schemas.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from site_snap.capture.banners import BannerRules
from site_snap.exceptions import ArgumentError
from site_snap.logger import logger

__all__ = [
    "VIEWPORT_PRESETS",
    "DEFAULT_VIEWPORT",
    "UNBOUNDED",
    "ViewportPreset",
    "NavigationTimings",
    "CaptureTimings",
    "CrawlLimits",
    "SnapConfig",
    "RunOptions",
    "resolve_viewport",
    "parse_pages",
    "parse_bool",
    "load_config",
]

#: ``--pages -1``
UNBOUNDED = -1
DEFAULT_VIEWPORT = "desktop"


class ViewportPreset(BaseModel):
    """Named screen size applied to the page before capture."""
    model_config = ConfigDict(frozen=True)

    name: str
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)

    def as_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


VIEWPORT_PRESETS: Dict[str, ViewportPreset] = {
    name: ViewportPreset(name=name, width=w, height=h)
    for name, (w, h) in {
        "desktop": (1920, 1080),
        "desktop-hd": (1366, 768),
        "laptop": (1280, 800),
        "tablet": (768, 1024),
        "tablet-landscape": (1024, 768),
        "mobile": (375, 812),  # iPhone X
        "mobile-large": (414, 896),  # iPhone XR
        "mobile-small": (320, 568),  # iPhone SE
    }.items()
}


class NavigationTimings(BaseModel):
    """Two-tier navigation: wait for network idle first, then settle for DOM ready."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    settled_timeout_ms: int = Field(30_000, gt=0, description="networkidle attempt.")
    homepage_fallback_timeout_ms: int = Field(60_000, gt=0, description="domcontentloaded retry for the start page.")
    page_fallback_timeout_ms: int = Field(45_000, gt=0, description="domcontentloaded retry for key and overflow pages.")
    crawl_fallback_timeout_ms: int = Field(50_000, gt=0, description="domcontentloaded retry in crawl mode.")


class CaptureTimings(BaseModel):
    """Delays and ceilings of the capture-readiness protocol, in milliseconds."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    scroll_step_delay_ms: int = Field(300, ge=0, description="Pause between lazy-load scroll steps.")
    scroll_step_ratio: float = Field(0.8, gt=0, le=1, description="Scroll step as a share of viewport height.")
    image_timeout_ms: int = Field(8_000, ge=0, description="Per-<img> load ceiling; slow connections need it.")
    background_timeout_ms: int = Field(5_000, ge=0, description="Per background-image probe ceiling.")
    picture_timeout_ms: int = Field(5_000, ge=0, description="Per <picture> source probe ceiling.")
    lazy_marker_delay_ms: int = Field(3_000, ge=0, description="Blind wait when lazy-load markers exist.")
    probe_grace_ms: int = Field(2_000, gt=0, description="Slack added to each probe before it is cancelled.")
    settle_delay_ms: int = Field(3_000, ge=0, description="Wait for dynamic content after image settlement.")
    final_scroll_delay_ms: int = Field(1_000, ge=0, description="Wait after the second scroll to bottom.")
    banner_delay_ms: int = Field(500, ge=0, description="Wait for banner hiding to take effect.")
    screenshot_timeout_ms: int = Field(60_000, gt=0, description="Full-page screenshot ceiling.")


class CrawlLimits(BaseModel):
    """Safety ceilings and failure containment."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    crawl_ceiling: int = Field(1000, ge=1, description="Budget of an unbounded crawl.")
    discovery_ceiling: int = Field(100, ge=1, description="Budget of an unbounded discovery run.")
    unbounded_key_pages: int = Field(20, ge=1, description="Key pages looked up when unbounded.")
    overflow_slack: int = Field(10, ge=0, description="Extra candidates beyond the remaining budget.")
    circuit_breaker: int = Field(50, ge=1, description="Consecutive failed overflow candidates before giving up.")
    max_page_retries: int = Field(1, ge=0, description="Times a failed URL may become eligible again.")


class SnapConfig(BaseModel):
    """Tuning for one run. Every field has a default; a file overrides any subset."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    navigation: NavigationTimings = Field(default_factory=NavigationTimings)
    capture: CaptureTimings = Field(default_factory=CaptureTimings)
    limits: CrawlLimits = Field(default_factory=CrawlLimits)
    banners: BannerRules = Field(default_factory=BannerRules)
    abort_on_capture_error: bool = Field(False, description="Any screenshot failure aborts the run.")
    screenshots_dir: Path = Field(Path("screenshots"), description="Base for auto-named run directories.")


class RunOptions(BaseModel):
    """What to capture. Built by the CLI from flags and environment."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(..., min_length=1)
    output_dir: Optional[Path] = None
    pages: int = Field(5, ge=UNBOUNDED)
    crawl: bool = False
    headless: bool = True
    viewport: ViewportPreset = Field(default_factory=lambda: VIEWPORT_PRESETS[DEFAULT_VIEWPORT])

    @field_validator("url", mode="before")
    def _strip_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def unbounded(self) -> bool:
        return self.pages == UNBOUNDED


def resolve_viewport(name: Optional[str], *, strict: bool) -> ViewportPreset:
    """
    Looks a preset up by name.

    ``strict`` (explicit flag): unknown names raise :class:`ArgumentError`.
    Otherwise (environment): unknown names fall back to ``desktop`` with a warning.
    """
    if not name:
        return VIEWPORT_PRESETS[DEFAULT_VIEWPORT]
    preset = VIEWPORT_PRESETS.get(name)
    if preset is not None:
        return preset
    available = ", ".join(VIEWPORT_PRESETS)
    if strict:
        raise ArgumentError(f"Invalid viewport preset {name!r}. Available presets: {available}")
    logger.warning("Unknown viewport preset %r. Falling back to %r.", name, DEFAULT_VIEWPORT)
    return VIEWPORT_PRESETS[DEFAULT_VIEWPORT]


def parse_pages(value: Union[str, int, None], default: int = 5, *, warn_above: int = 50) -> int:
    """Parses ``--pages``: an integer >= -1, where -1 means unbounded."""
    if value is None or value == "":
        return default
    try:
        pages = int(value)
    except (TypeError, ValueError):
        raise ArgumentError("--pages must be a positive number or -1 for unlimited") from None
    if pages < UNBOUNDED:
        raise ArgumentError("--pages must be a positive number or -1 for unlimited")
    if pages > warn_above:
        logger.warning(
            "Capturing more than %d pages may generate significant traffic and take a long time.",
            warn_above,
        )
    return pages


_TRUE = frozenset({"true", "1", "yes", "y", "on"})
_FALSE = frozenset({"false", "0", "no", "n", "off"})


def parse_bool(value: Optional[str], default: bool) -> bool:
    """Environment-style boolean; unrecognised values keep *default*."""
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    return default


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> SnapConfig:
    """
    Reads a YAML or JSON tuning file and returns a validated SnapConfig.
    Without a path the built-in defaults are used.
    """
    if path is None:
        return SnapConfig()

    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    try:
        return SnapConfig(**data)
    except ValidationError:
        logger.error("Config %s failed validation", path_obj)
        raise
