# File: tests/test_config.py
import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from site_snap.config import (
    VIEWPORT_PRESETS,
    RunOptions,
    SnapConfig,
    load_config,
    parse_bool,
    parse_pages,
    resolve_viewport,
)
from site_snap.exceptions import ArgumentError
from site_snap.logger import LOGGER_NAME


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("limits:\n  crawl_ceiling: 10\ncapture:\n  settle_delay_ms: 0", ".yaml", None),
        (json.dumps({"limits": {"crawl_ceiling": 10}}), ".json", None),
        ("", ".yml", None),
        ("limits: {crawl_ceiling: 0}", ".yaml", ValidationError),
        ("unknown_section: {}", ".yaml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("- a\n- b", ".yaml", TypeError),
        ("{broken", ".json", ValueError),
        ("[1, 2]", ".json", TypeError),
        ("crawl_ceiling = 10", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, SnapConfig)


def test_load_config_overrides_subset(tmp_path):
    cfg_path = write_file(
        tmp_path,
        "abort_on_capture_error: true\n"
        "banners:\n  selectors: ['#promo']\n  text_pairs: [[newsletter, subscribe]]\n",
        ".yaml",
    )
    cfg = load_config(cfg_path)

    assert cfg.abort_on_capture_error is True
    assert cfg.banners.selectors == ["#promo"]
    assert cfg.banners.text_pairs == [("newsletter", "subscribe")]
    assert cfg.limits.crawl_ceiling == 1000
    assert cfg.navigation.settled_timeout_ms == 30_000


def test_load_config_defaults_without_path():
    cfg = load_config(None)
    assert cfg == SnapConfig()
    assert cfg.limits.discovery_ceiling == 100
    assert cfg.capture.image_timeout_ms == 8_000


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_viewport_presets():
    assert resolve_viewport(None, strict=True).name == "desktop"
    assert resolve_viewport("mobile", strict=True).as_dict() == {"width": 375, "height": 812}
    assert len(VIEWPORT_PRESETS) == 8
    with pytest.raises(ArgumentError):
        resolve_viewport("watch", strict=True)
    assert resolve_viewport("watch", strict=False).name == "desktop"


@pytest.mark.parametrize("value,expected", [(None, 5), ("", 5), ("3", 3), ("0", 0), ("-1", -1), (" 7 ", 7), (12, 12)])
def test_parse_pages(value, expected):
    assert parse_pages(value) == expected


@pytest.mark.parametrize("value", ["abc", "-2", "1.5"])
def test_parse_pages_rejects(value):
    with pytest.raises(ArgumentError):
        parse_pages(value)


def test_parse_pages_warns_on_large_values(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger(LOGGER_NAME), "propagate", True)
    with caplog.at_level("WARNING", logger=LOGGER_NAME):
        assert parse_pages("51") == 51
    assert "significant traffic" in caplog.text


@pytest.mark.parametrize(
    "value,default,expected",
    [("true", False, True), ("YES", False, True), ("0", True, False), ("off", True, False),
     ("maybe", True, True), (None, False, False)],
)
def test_parse_bool(value, default, expected):
    assert parse_bool(value, default) is expected


def test_run_options_validation():
    opts = RunOptions(url="  https://example.com  ", pages=-1)
    assert opts.url == "https://example.com"
    assert opts.unbounded
    with pytest.raises(ValidationError):
        RunOptions(url="https://example.com", pages=-5)
    with pytest.raises(ValidationError):
        RunOptions(url="")
