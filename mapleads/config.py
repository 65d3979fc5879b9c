"""Configuration loading for the MapLeads extractor.

Values are layered: built-in defaults, an optional YAML file, ``MAPLEADS_*``
environment variables (``.env`` is loaded first) and finally explicit
overrides from the command line. The result is a frozen :class:`Settings`
value handed to every component.
"""

from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from mapleads.errors import ConfigError
from mapleads.logging_config import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("mapleads.yml")
_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_CONFIG: dict[str, Any] = {
    "max_results": 20,
    "batch_size": 20,
    "headless": False,
    "maps_url": "https://www.google.com/maps?hl=en",
    "output": {
        "csv_path": "google_maps_data.csv",
        "pdf_path": "google_maps_summary.pdf",
        "report_title": "Extraction Report",
    },
    "timeouts": {
        "feed_ms": 15000,
        "navigation_ms": 45000,
        "heading_ms": 8000,
    },
    "delays": {
        "detail_settle_ms": 3000,
        "batch_rest_ms": 10000,
    },
    "scroll": {
        "step_px": 800,
        "settle_ms": 1500,
        "wiggle_at": 2,
        "wiggle_px": 300,
        "retry_cap": 8,
        "max_iterations": 400,
    },
    "extraction": {
        "first_match": False,
        "placeholder_titles": ["Google Maps"],
    },
}

# Environment variable -> (section, key) in DEFAULT_CONFIG.
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "MAPLEADS_MAX_RESULTS": (None, "max_results"),
    "MAPLEADS_BATCH_SIZE": (None, "batch_size"),
    "MAPLEADS_HEADLESS": (None, "headless"),
    "MAPLEADS_CSV_PATH": ("output", "csv_path"),
    "MAPLEADS_PDF_PATH": ("output", "pdf_path"),
    "MAPLEADS_FEED_TIMEOUT_MS": ("timeouts", "feed_ms"),
    "MAPLEADS_NAV_TIMEOUT_MS": ("timeouts", "navigation_ms"),
    "MAPLEADS_HEADING_TIMEOUT_MS": ("timeouts", "heading_ms"),
    "MAPLEADS_DETAIL_SETTLE_MS": ("delays", "detail_settle_ms"),
    "MAPLEADS_BATCH_REST_MS": ("delays", "batch_rest_ms"),
    "MAPLEADS_SCROLL_STEP_PX": ("scroll", "step_px"),
    "MAPLEADS_SCROLL_SETTLE_MS": ("scroll", "settle_ms"),
    "MAPLEADS_SCROLL_WIGGLE_AT": ("scroll", "wiggle_at"),
    "MAPLEADS_SCROLL_WIGGLE_PX": ("scroll", "wiggle_px"),
    "MAPLEADS_SCROLL_RETRY_CAP": ("scroll", "retry_cap"),
    "MAPLEADS_SCROLL_MAX_ITERATIONS": ("scroll", "max_iterations"),
    "MAPLEADS_MAPS_URL": (None, "maps_url"),
    "MAPLEADS_REPORT_TITLE": ("output", "report_title"),
    "MAPLEADS_FIRST_MATCH": ("extraction", "first_match"),
    "MAPLEADS_PLACEHOLDER_TITLES": ("extraction", "placeholder_titles"),
}


@dataclass(frozen=True)
class Settings:
    query: str = ""
    max_results: int = 20
    batch_size: int = 20
    headless: bool = False
    maps_url: str = "https://www.google.com/maps?hl=en"
    output_csv: str = "google_maps_data.csv"
    output_pdf: str = "google_maps_summary.pdf"
    report_title: str = "Extraction Report"
    feed_timeout_ms: int = 15000
    nav_timeout_ms: int = 45000
    heading_timeout_ms: int = 8000
    detail_settle_ms: int = 3000
    batch_rest_ms: int = 10000
    scroll_step_px: int = 800
    scroll_settle_ms: int = 1500
    wiggle_at: int = 2
    wiggle_px: int = 300
    retry_cap: int = 8
    max_scroll_iterations: int = 400
    first_match: bool = False
    placeholder_titles: tuple[str, ...] = ("Google Maps",)
    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None


def _deep_merge(default: Any, override: Any) -> Any:
    if not isinstance(default, dict) or not isinstance(override, dict):
        return deepcopy(override)

    merged: dict[str, Any] = deepcopy(default)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in _FALSE_VALUES


def _as_int(name: str, value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        LOGGER.debug("Configuration file %s not found; using defaults", path)
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return data


def _apply_env(config: dict[str, Any]) -> dict[str, Any]:
    merged = deepcopy(config)
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        target = merged if section is None else merged.setdefault(section, {})
        target[key] = raw.strip()
    return merged


def load_settings(
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Build a validated :class:`Settings` from every configuration layer."""
    load_dotenv()

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if config_path and not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    config = _deep_merge(DEFAULT_CONFIG, _load_yaml(path))
    config = _apply_env(config)

    output = config.get("output", {})
    timeouts = config.get("timeouts", {})
    delays = config.get("delays", {})
    scroll = config.get("scroll", {})
    extraction = config.get("extraction", {})

    titles = extraction.get("placeholder_titles") or []
    if isinstance(titles, str):
        titles = titles.split(",")

    values: dict[str, Any] = {
        "max_results": _as_int("max_results", config.get("max_results")),
        "batch_size": _as_int("batch_size", config.get("batch_size")),
        "headless": _as_bool(config.get("headless")),
        "maps_url": str(config.get("maps_url")),
        "output_csv": str(output.get("csv_path")),
        "output_pdf": str(output.get("pdf_path")),
        "report_title": str(output.get("report_title")),
        "feed_timeout_ms": _as_int("timeouts.feed_ms", timeouts.get("feed_ms")),
        "nav_timeout_ms": _as_int("timeouts.navigation_ms", timeouts.get("navigation_ms")),
        "heading_timeout_ms": _as_int("timeouts.heading_ms", timeouts.get("heading_ms")),
        "detail_settle_ms": _as_int("delays.detail_settle_ms", delays.get("detail_settle_ms")),
        "batch_rest_ms": _as_int("delays.batch_rest_ms", delays.get("batch_rest_ms")),
        "scroll_step_px": _as_int("scroll.step_px", scroll.get("step_px")),
        "scroll_settle_ms": _as_int("scroll.settle_ms", scroll.get("settle_ms")),
        "wiggle_at": _as_int("scroll.wiggle_at", scroll.get("wiggle_at")),
        "wiggle_px": _as_int("scroll.wiggle_px", scroll.get("wiggle_px")),
        "retry_cap": _as_int("scroll.retry_cap", scroll.get("retry_cap")),
        "max_scroll_iterations": _as_int("scroll.max_iterations", scroll.get("max_iterations")),
        "first_match": _as_bool(extraction.get("first_match")),
        "placeholder_titles": tuple(str(title).strip() for title in titles if str(title).strip()),
        "telegram_bot_token": os.getenv("TELEGRAM_BOT_TOKEN") or None,
        "telegram_chat_id": os.getenv("TELEGRAM_CHAT_ID") or None,
    }

    known = {field.name for field in fields(Settings)}
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in known:
            raise ConfigError(f"Unknown setting: {key}")
        values[key] = value

    if isinstance(values.get("query"), str):
        values["query"] = values["query"].strip()

    settings = Settings(**values)
    _validate(settings)
    return settings


def _validate(settings: Settings) -> None:
    if settings.max_results <= 0:
        raise ConfigError("max_results must be a positive integer")
    if settings.batch_size <= 0:
        raise ConfigError("batch_size must be a positive integer")
    if settings.retry_cap < 0 or settings.max_scroll_iterations <= 0:
        raise ConfigError("scroll retry_cap/max_iterations must be positive")
    for name in ("feed_timeout_ms", "nav_timeout_ms", "heading_timeout_ms"):
        if getattr(settings, name) <= 0:
            raise ConfigError(f"{name} must be a positive integer")
    for name in ("detail_settle_ms", "batch_rest_ms", "scroll_settle_ms"):
        if getattr(settings, name) < 0:
            raise ConfigError(f"{name} must not be negative")
