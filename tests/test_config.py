# File: tests/test_config.py
import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from scoopi.config import (
    DEFAULT_EXCLUDE_PATTERNS,
    CrawlConfig,
    SettingsStore,
    default_settings_path,
    load_config,
)


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults():
    cfg = CrawlConfig()
    assert cfg.max_depth == 3
    assert cfg.delay_ms == 1000
    assert cfg.timeout_ms == 30_000
    assert cfg.output_dir == Path("./docs")
    assert cfg.include_patterns == ()
    assert cfg.exclude_patterns == DEFAULT_EXCLUDE_PATTERNS
    assert cfg.headless is True
    assert cfg.verbose is False
    assert cfg.renderer == "browser"
    assert "scoopi" in cfg.user_agent


@pytest.mark.parametrize(
    "field,value",
    [
        ("max_depth", -1),
        ("max_depth", 11),
        ("delay_ms", 10_001),
        ("timeout_ms", 999),
        ("timeout_ms", 120_001),
        ("renderer", "firefox"),
        ("output_dir", "   "),
        ("user_agent", ""),
        ("include_patterns", [1, 2]),
        ("unknown_option", True),
    ],
)
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        CrawlConfig(**{field: value})


def test_bounds_are_inclusive():
    cfg = CrawlConfig(max_depth=0, delay_ms=0, timeout_ms=1000)
    assert (cfg.max_depth, cfg.delay_ms, cfg.timeout_ms) == (0, 0, 1000)
    cfg = CrawlConfig(max_depth=10, delay_ms=10_000, timeout_ms=120_000)
    assert (cfg.max_depth, cfg.delay_ms, cfg.timeout_ms) == (10, 10_000, 120_000)


def test_patterns_from_comma_string():
    cfg = CrawlConfig(include_patterns="*/docs/*, */api/* ,", exclude_patterns=None)
    assert cfg.include_patterns == ("*/docs/*", "*/api/*")
    assert cfg.exclude_patterns == ()


def test_config_is_frozen():
    cfg = CrawlConfig()
    with pytest.raises(ValidationError):
        cfg.max_depth = 5


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("max_depth: 2\noutput_dir: out\n", ".yaml", None),
        (json.dumps({"max_depth": 2, "output_dir": "out"}), ".json", None),
        ("", ".yaml", None),
        ("max_depth: [unclosed", ".yaml", ValueError),
        ("{not json", ".json", ValueError),
        ("- a\n- b\n", ".yaml", TypeError),
        ("max_depth: 42\n", ".yaml", ValidationError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, CrawlConfig)
        if content:
            assert cfg.max_depth == 2
            assert cfg.output_dir == Path("out")


def test_load_config_explicit_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_load_config_default_missing(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_settings_path() == tmp_path / ".scoopi" / "config.yaml"
    assert load_config() == CrawlConfig()


def test_override_precedence(tmp_path):
    cfg_path = write_file(tmp_path, "max_depth: 2\ndelay_ms: 50\n", ".yaml")
    cfg = load_config(cfg_path, {"max_depth": 5, "delay_ms": None, "headless": None})
    assert cfg.max_depth == 5
    assert cfg.delay_ms == 50
    assert cfg.headless is True


# --------------------------------------------------------------------------- #
#                                SettingsStore                                #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def store(tmp_path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings" / "config.yaml")


def test_store_absent_file(store):
    assert not store.exists()
    assert store.load() == {}
    assert store.effective() == CrawlConfig()


def test_store_set_and_get(store):
    assert store.set_value("max_depth", "5") == 5
    assert store.exists()
    assert yaml.safe_load(store.path.read_text(encoding="utf-8")) == {"max_depth": 5}
    assert store.get_value("max_depth") == (5, True)
    assert store.get_value("delay_ms") == (1000, False)


def test_store_set_patterns_and_bools(store):
    assert store.set_value("include_patterns", "*/docs/*,*/api/*") == ["*/docs/*", "*/api/*"]
    assert store.set_value("headless", "false") is False
    cfg = store.effective()
    assert cfg.include_patterns == ("*/docs/*", "*/api/*")
    assert cfg.headless is False


def test_store_rejects_bad_values(store):
    with pytest.raises(ValueError, match="Unknown configuration key"):
        store.set_value("colour", "blue")
    with pytest.raises(ValueError, match="Invalid value for max_depth"):
        store.set_value("max_depth", "50")
    with pytest.raises(ValueError, match="Invalid value for verbose"):
        store.set_value("verbose", "maybe")
    with pytest.raises(KeyError):
        store.get_value("colour")
    assert store.load() == {}


def test_store_reset(store):
    store.update(max_depth=1, verbose=True)
    assert store.effective().max_depth == 1
    store.reset()
    assert store.load() == {}
    assert store.effective() == CrawlConfig()


def test_store_json_format(tmp_path):
    store = SettingsStore(tmp_path / "config.json")
    store.set_value("delay_ms", "250")
    assert json.loads(store.path.read_text(encoding="utf-8")) == {"delay_ms": 250}
    assert store.effective({"delay_ms": None}).delay_ms == 250
