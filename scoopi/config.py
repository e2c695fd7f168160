"""
Configuration for scoopi crawls.

A crawl runs on an immutable :class:`CrawlConfig` snapshot validated with
Pydantic. Values are merged from three layers, lowest precedence first:

1. model defaults,
2. persisted user settings (``~/.scoopi/config.yaml``, see :class:`SettingsStore`),
3. invocation overrides (CLI options).
"""
from __future__ import annotations

import json
import os
import errno
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from scoopi import __version__

DEFAULT_USER_AGENT = f"Mozilla/5.0 (compatible; scoopi/{__version__})"

#: Binary and static assets that never convert to useful Markdown.
DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "*.css",
    "*.js",
    "*.pdf",
    "*.zip",
    "*.exe",
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.svg",
    "*.ico",
)

CONFIG_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "crawling": ("max_depth", "delay_ms", "timeout_ms"),
    "output": ("output_dir",),
    "browser": ("renderer", "headless", "user_agent"),
    "filtering": ("include_patterns", "exclude_patterns"),
    "logging": ("verbose",),
}


class CrawlConfig(BaseModel):
    """Settings snapshot for one crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(3, ge=0, le=10, description="Maximum link depth from the seed URL.")
    delay_ms: int = Field(1000, ge=0, le=10_000, description="Pause between page fetches (ms).")
    timeout_ms: int = Field(30_000, ge=1000, le=120_000, description="Per-page render timeout (ms).")
    output_dir: Path = Field(Path("./docs"), description="Root directory for Markdown files.")
    include_patterns: Tuple[str, ...] = Field(
        (), description="Glob patterns a URL must match (any) to be followed."
    )
    exclude_patterns: Tuple[str, ...] = Field(
        DEFAULT_EXCLUDE_PATTERNS, description="Glob patterns that reject a URL."
    )
    verbose: bool = Field(False, description="Debug logging and full error detail.")
    headless: bool = Field(True, description="Run the browser without a window.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="User-Agent header.")
    renderer: Literal["browser", "http"] = Field(
        "browser", description="Page renderer: headless Chromium or plain HTTP."
    )

    @field_validator("output_dir", mode="before")
    def _require_output_dir(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("output_dir cannot be empty")
        return v

    @field_validator("user_agent", mode="before")
    def _strip_user_agent(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("include_patterns", "exclude_patterns", mode="before")
    def _split_patterns(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            patterns = []
            for item in v:
                if not isinstance(item, str):
                    raise ValueError(f"pattern must be a string, got {type(item).__name__}")
                if item.strip():
                    patterns.append(item.strip())
            return tuple(patterns)
        return v


def default_settings_path() -> Path:
    return Path.home() / ".scoopi" / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of {path} must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of {path} must be a mapping, got {type(data).__name__}")
    return data


class SettingsStore:
    """Persisted user settings (a partial mapping of :class:`CrawlConfig` fields)."""

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self.path = Path(path).expanduser() if path is not None else default_settings_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> dict[str, Any]:
        """Return stored settings; an absent file means no customisations."""
        if not self.exists():
            return {}
        if self.path.suffix.lower() == ".json":
            return _read_json(self.path)
        return _read_yaml(self.path)

    def save(self, settings: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.suffix.lower() == ".json":
            text = json.dumps(dict(settings), indent=2, ensure_ascii=False)
        else:
            text = yaml.safe_dump(dict(settings), allow_unicode=True, sort_keys=True)
        self.path.write_text(text, encoding="utf-8")

    def update(self, **changes: Any) -> dict[str, Any]:
        settings = {**self.load(), **changes}
        self.save(settings)
        return settings

    def reset(self) -> None:
        self.save({})

    def effective(self, overrides: Optional[Mapping[str, Any]] = None) -> CrawlConfig:
        """Defaults < stored settings < *overrides*; ``None`` overrides are ignored."""
        merged: dict[str, Any] = dict(self.load())
        merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
        return CrawlConfig(**merged)

    def get_value(self, key: str) -> Tuple[Any, bool]:
        """Return the effective value of *key* and whether the user customised it."""
        if key not in CrawlConfig.model_fields:
            raise KeyError(key)
        effective = self.effective().model_dump(mode="json")
        return effective[key], key in self.load()

    def set_value(self, key: str, raw: str) -> Any:
        """Parse *raw* for *key*, validate it against the whole model and persist it."""
        if key not in CrawlConfig.model_fields:
            raise ValueError(f"Unknown configuration key: {key}")
        user = self.load()
        try:
            candidate = CrawlConfig(**{**user, key: raw})
        except ValidationError as exc:
            reasons = "; ".join(err["msg"] for err in exc.errors())
            raise ValueError(f"Invalid value for {key}: {reasons}") from exc
        value = candidate.model_dump(mode="json")[key]
        self.update(**{key: value})
        return value


def load_config(
    path: Union[str, Path, None] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> CrawlConfig:
    """
    Merge defaults, the user settings file and *overrides* into a validated CrawlConfig.

    An explicitly given *path* must exist; the default location may be absent.
    ``None`` values in *overrides* are ignored so unset CLI options fall through.
    """
    store = SettingsStore(path)
    if path is not None and not store.exists():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(store.path))
    return store.effective(overrides)


__all__ = [
    "CONFIG_CATEGORIES",
    "CrawlConfig",
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_USER_AGENT",
    "SettingsStore",
    "default_settings_path",
    "load_config",
]
