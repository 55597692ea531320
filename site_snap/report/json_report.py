# site_snap/report/json_report.py

"""
JSON manifest for a SiteSnap run.

Serializes a CrawlSession (run metadata and capture records) to a file.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from site_snap.crawler.models import CrawlSession


def session_summary(session: CrawlSession) -> Dict[str, Any]:
    """Plain-dict view of *session* shared by the JSON and HTML reports."""
    records = []
    for record in session.records:
        item = asdict(record)
        item["captured_at"] = record.captured_at.isoformat(timespec="seconds")
        records.append(item)
    return {
        "start_url": session.start_url,
        "mode": session.mode.value,
        "pages": session.pages,
        "budget": session.budget,
        "viewport": {
            "name": session.viewport.name,
            "width": session.viewport.width,
            "height": session.viewport.height,
        },
        "captured": session.captured,
        "visited": len(session.visited),
        "failed": sorted(session.failures),
        "records": records,
    }


def render_json(session: CrawlSession, output_path: Path | str) -> Path:
    """
    Saves the manifest of *session* as JSON.

    :param session: finished CrawlSession
    :param output_path: path to the JSON file
    :return: Path of the saved file

    Example:
    ```python
    from site_snap.report.json_report import render_json
    manifest = render_json(session, session.output_dir / 'manifest.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(session_summary(session), f, ensure_ascii=False, indent=2)

    return output
