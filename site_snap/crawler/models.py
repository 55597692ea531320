# site_snap/crawler/models.py
"""
Data models for the SiteSnap crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set

from site_snap.config import UNBOUNDED, RunOptions, SnapConfig, ViewportPreset
from site_snap.crawler.frontier import Frontier, normalize_url, origin_of
from site_snap.exceptions import ArgumentError


class CrawlMode(str, Enum):
    DISCOVERY = "discovery"
    CRAWL = "crawl"


@dataclass(slots=True, frozen=True)
class CaptureRecord:
    """One successful capture. ``index`` is 1-based and follows visit order."""

    url: str
    normalized_url: str
    filename: str
    index: int
    viewport: str
    captured_at: datetime = field(default_factory=datetime.now)


@dataclass(slots=True)
class CrawlSession:
    """
    Whole mutable state of one run.

    The controller holds no run state of its own; every operation receives the
    session, so tests can build one, drive it and inspect it afterwards.
    """

    start_url: str
    base_origin: str
    mode: CrawlMode
    pages: int
    budget: int
    viewport: ViewportPreset
    output_dir: Path
    visited: Set[str] = field(default_factory=set)
    records: List[CaptureRecord] = field(default_factory=list)
    failures: Dict[str, int] = field(default_factory=dict)
    frontier: Frontier = field(init=False)

    def __post_init__(self) -> None:
        self.frontier = Frontier(self.base_origin, self.visited)

    @classmethod
    def create(cls, options: RunOptions, config: SnapConfig, output_dir: Path) -> CrawlSession:
        origin = origin_of(options.url)
        if origin is None or normalize_url(options.url) is None:
            raise ArgumentError(f"Not a usable http(s) URL: {options.url!r}")
        mode = CrawlMode.CRAWL if options.crawl else CrawlMode.DISCOVERY
        if options.pages == UNBOUNDED:
            budget = config.limits.crawl_ceiling if mode is CrawlMode.CRAWL else config.limits.discovery_ceiling
        else:
            budget = options.pages
        return cls(
            start_url=options.url,
            base_origin=origin,
            mode=mode,
            pages=options.pages,
            budget=budget,
            viewport=options.viewport,
            output_dir=output_dir,
        )

    @property
    def unbounded(self) -> bool:
        return self.pages == UNBOUNDED

    @property
    def captured(self) -> int:
        return len(self.records)

    @property
    def remaining(self) -> int:
        return max(0, self.budget - self.captured)

    @property
    def budget_met(self) -> bool:
        return self.captured >= self.budget

    @property
    def next_index(self) -> int:
        return self.captured + 1

    def normalize(self, url: str) -> Optional[str]:
        return normalize_url(url, self.base_origin)

    def progress(self) -> str:
        total = "∞" if self.unbounded else str(self.budget)
        return f"{self.captured}/{total}"
