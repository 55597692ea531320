"""site_snap.report.html_report: HTML gallery of a run rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_snap.crawler.models import CrawlSession
from site_snap.report.json_report import session_summary

#: templates shipped with the package
DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


def render_html(
    session: CrawlSession,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Renders ``report.html.j2`` for *session* and saves it.

    Args:
        session: finished CrawlSession.
        template_dir: directory with Jinja2 templates; ``None`` uses the built-in one.
        output_path: path of the resulting HTML file.

    Returns:
        Path of the saved HTML file.
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("report.html.j2")

    context: dict[str, Any] = session_summary(session)

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
