"""site_snap.capture: makes a rendered page screenshot-ready and writes the PNG."""
