# File: tests/test_link_extractor.py
"""Tests for key-page and internal-link discovery on the rendered page."""
import pytest

from site_snap.crawler.link_extractor import discover_internal_links, discover_key_pages, iter_anchors

from .conftest import FakePage, links_page

HOME = "https://example.com"


async def _page_at(html: str, url: str = HOME, **kwargs) -> FakePage:
    page = FakePage({url: html}, **kwargs)
    await page.goto(url, wait_until="networkidle", timeout_ms=1)
    return page


def test_iter_anchors_resolves_against_base_href():
    html = links_page("team", "/abs", "  ", extra='<base href="https://example.com/docs/">')
    anchors = list(iter_anchors(html, "https://example.com/index"))
    assert [a[1] for a in anchors] == ["https://example.com/docs/team", "https://example.com/abs"]


@pytest.mark.asyncio()
async def test_key_pages_match_text_and_path():
    html = links_page(
        ("/company", "About"),
        ("/reach-us", " CONTACT "),
        ("/about-team", "Meet the team"),
        ("/products/widget", "Widget"),
        ("/products/gadget", ""),
        ("/blog", "Blog"),
        ("/company", "About"),
    )
    page = await _page_at(html)

    links = await discover_key_pages(page, -1)

    assert links == [
        "https://example.com/company",
        "https://example.com/reach-us",
        "https://example.com/about-team",
        "https://example.com/products/widget",
    ]


@pytest.mark.asyncio()
async def test_key_pages_truncate_to_limit():
    html = links_page(("/about", "About"), ("/contact", "Contact"), ("/product/a", "A"))
    page = await _page_at(html)

    assert await discover_key_pages(page, 2) == ["https://example.com/about", "https://example.com/contact"]
    assert await discover_key_pages(page, 0) == []


@pytest.mark.asyncio()
async def test_key_pages_failure_is_empty():
    page = await _page_at(links_page(("/about", "About")), content_error=True)
    assert await discover_key_pages(page, 5) == []


@pytest.mark.asyncio()
async def test_internal_links_filtering():
    html = links_page(
        "/a/",
        "/a?utm=1",
        "b",
        "#section",
        "mailto:hi@example.com",
        "JavaScript:void(0)",
        "https://other.com/x",
        "https://example.com:8443/port",
        "/seen/",
        "/c#frag",
    )
    page = await _page_at(html, HOME + "/")

    links = await discover_internal_links(page, HOME, {"https://example.com/seen"})

    assert links == ["https://example.com/a", "https://example.com/b", "https://example.com/c"]
    assert all(link.startswith(HOME + "/") for link in links)


@pytest.mark.asyncio()
async def test_internal_links_failure_is_empty():
    page = await _page_at(links_page("/a"), content_error=True)
    assert await discover_internal_links(page, HOME, set()) == []


@pytest.mark.asyncio()
async def test_internal_links_accept_explicit_default_port():
    page = await _page_at(links_page("https://example.com:443/pricing", "http://example.com:80/plain"))

    links = await discover_internal_links(page, HOME, set())

    assert links == ["https://example.com/pricing"]
