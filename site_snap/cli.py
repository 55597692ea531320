# === FILE: site_snap/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point for SiteSnap.

Usage:
  site-snap URL [options]

Options:
  --url URL           Target URL (overrides the positional argument)
  --output DIR        Output directory (default: screenshots/capture_<timestamp>)
  --pages N           Pages to capture, -1 for unlimited (default: 5)
  --crawl             Crawl every internal page breadth-first instead of smart discovery
  --headless          Run the browser headless (default)
  --debug             Keep the browser visible for troubleshooting
  --viewport PRESET   desktop, desktop-hd, laptop, tablet, tablet-landscape,
                      mobile, mobile-large, mobile-small
  --config PATH       YAML/JSON file with timings, ceilings and banner rules
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only if omitted)
  --no-report         Do not write manifest.json and index.html

Environment variables: TARGET_URL, OUTPUT_DIR, PAGES, CRAWL, HEADLESS, DEBUG, VIEWPORT.
Flags win over the environment.

Example:
  site-snap https://example.com --pages 10 --viewport mobile
"""
import asyncio
import os
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_snap import __version__
from site_snap.config import (
    VIEWPORT_PRESETS,
    RunOptions,
    load_config,
    parse_bool,
    parse_pages,
    resolve_viewport,
)
from site_snap.engine import start_capture
from site_snap.exceptions import ArgumentError, SiteSnapError
from site_snap.logger import init_logging
from site_snap.report import render_html, render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])

USAGE_HINT = (
    "Usage: site-snap <url> [--output <directory>] [--pages <number>] [--crawl] [--headless] "
    "[--viewport <preset>]\n"
    "Environment variables: TARGET_URL, OUTPUT_DIR, PAGES, CRAWL, HEADLESS, DEBUG, VIEWPORT\n"
    "Available viewport presets: " + ", ".join(VIEWPORT_PRESETS)
)


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def build_options(url_arg, url_opt, output_dir, pages, crawl, headless, debug, viewport, env=None) -> RunOptions:
    """Merges flags over environment variables. Raises ArgumentError on invalid input."""
    env = os.environ if env is None else env

    url = url_opt or url_arg or env.get('TARGET_URL')
    if not url:
        raise ArgumentError(USAGE_HINT)

    run_pages = parse_pages(env.get('PAGES'), 5)
    if pages is not None:
        run_pages = parse_pages(pages, run_pages)

    run_crawl = crawl or parse_bool(env.get('CRAWL'), False)

    run_headless = parse_bool(env.get('HEADLESS'), True)
    if parse_bool(env.get('DEBUG'), False):
        run_headless = False
    if headless:
        run_headless = True
    if debug:
        run_headless = False

    if viewport is not None:
        preset = resolve_viewport(viewport, strict=True)
    else:
        preset = resolve_viewport(env.get('VIEWPORT'), strict=False)

    out = output_dir or env.get('OUTPUT_DIR') or None
    return RunOptions(
        url=url,
        output_dir=Path(out) if out else None,
        pages=run_pages,
        crawl=run_crawl,
        headless=run_headless,
        viewport=preset,
    )


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteSnap, version %(version)s')
@click.argument('url_arg', metavar='URL', required=False)
@click.option('--url', 'url_opt', default=None, help='Target URL (overrides the positional argument).')
@click.option(
    '--output', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Output directory (default: screenshots/capture_<timestamp>).'
)
@click.option('--pages', '-p', 'pages', default=None, help='Pages to capture, -1 for unlimited.')
@click.option('--crawl', is_flag=True, help='Crawl all internal pages breadth-first.')
@click.option('--headless', is_flag=True, help='Run the browser headless.')
@click.option('--debug', is_flag=True, help='Keep the browser visible for troubleshooting.')
@click.option('--viewport', default=None, help='Viewport preset: ' + ', '.join(VIEWPORT_PRESETS))
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='YAML/JSON tuning file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout if omitted)'
)
@click.option('--report/--no-report', default=True, show_default=True, help='Write manifest.json and index.html.')
def cli(url_arg, url_opt, output_dir, pages, crawl, headless, debug, viewport,
        config_path, log_level, log_file, report):
    """Capture full-page screenshots of a website."""
    init_logging(level=log_level, log_file=str(log_file) if log_file else None)

    try:
        options = build_options(url_arg, url_opt, output_dir, pages, crawl, headless, debug, viewport)
    except ArgumentError as e:
        print_error(str(e))
    except ValidationError as e:
        print_error(f'Invalid arguments: {e}')

    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')

    if options.crawl:
        click.echo('Crawler mode activated - will capture ALL pages found on the site')
    if not options.headless:
        click.echo('Debug mode: browser will be visible for troubleshooting')

    try:
        session = asyncio.run(start_capture(options, cfg))
    except SiteSnapError as e:
        print_error(f'Error: {e}')
    except Exception as e:
        print_error(f'Unexpected error: {e}')

    if report:
        try:
            render_json(session, session.output_dir / 'manifest.json')
            render_html(session, None, session.output_dir / 'index.html')
        except Exception as e:
            print_error(f'Failed to write report: {e}')

    click.echo(f'Captured {session.captured} pages')
    click.echo(f'Screenshots saved to: {session.output_dir.resolve()}')


if __name__ == "__main__":
    cli()
