# File: site_snap/report/__init__.py
"""site_snap.report: run manifest (JSON) and screenshot gallery (HTML) written next to the PNGs."""

from __future__ import annotations

from .html_report import DEFAULT_TEMPLATE_DIR, render_html
from .json_report import render_json, session_summary

__all__ = ["render_json", "render_html", "session_summary", "DEFAULT_TEMPLATE_DIR"]
