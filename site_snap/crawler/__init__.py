"""site_snap.crawler: URL frontier, link discovery and the crawl controller."""
