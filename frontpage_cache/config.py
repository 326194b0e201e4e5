"""Configuration objects and constants for the cover cache."""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml

from .errors import ConfigError
from .models import LandingPageContract

logger = logging.getLogger("frontpage_cache.config")

DEFAULT_CONFIG_PATH = Path("config.yaml")
DEFAULT_CACHE_DIR = Path("cache")
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_PDF_DPI = 300

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


@dataclass
class CoverConfig:
    """Top-level settings that control which covers are cached and for how long."""

    sources: List[str]
    cache_time: timedelta
    cache_dir: Path = DEFAULT_CACHE_DIR
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    pdf_dpi: int = DEFAULT_PDF_DPI
    landing: LandingPageContract = field(default_factory=LandingPageContract)

    def pick_source(self, rng: Optional[random.Random] = None) -> str:
        """Pick one configured source at random."""
        if not self.sources:
            raise ConfigError("No sources configured")
        chooser = rng or random
        return chooser.choice(self.sources)


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """Parse Go-style durations such as ``1h30m`` or ``500ms``.

    Bare numbers are interpreted as seconds.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ConfigError(f"Invalid duration: {value!r}")

    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ConfigError(f"Invalid duration: {value!r}")

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            raise ConfigError(f"Invalid duration: {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ConfigError(f"Invalid duration: {value!r}")
    return timedelta(seconds=sign * total)


def _landing_from_mapping(raw: Any) -> LandingPageContract:
    if raw is None:
        return LandingPageContract()
    if not isinstance(raw, dict):
        raise ConfigError("'landing_page' must be a mapping")
    defaults = LandingPageContract()
    return LandingPageContract(
        prefix=str(raw.get("prefix", defaults.prefix)),
        element_id=str(raw.get("element_id", defaults.element_id)),
        origin=str(raw.get("origin", defaults.origin)),
    )


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except ValueError as exc:
        raise ConfigError(f"'{key}' must be a positive integer, got {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
    return number


def _cache_dir(value: Any) -> Path:
    if isinstance(value, Path):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'cache_dir' must be a non-empty path, got {value!r}")
    return Path(value)


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> CoverConfig:
    """Read a YAML configuration file into a :class:`CoverConfig`."""
    config_path = Path(path)
    logger.info("Loading configuration from file: %s", config_path)
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {config_path}: {exc}", config_path) from exc

    try:
        data = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}", config_path) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {config_path}", config_path)

    sources = data.get("pdf_urls")
    if not isinstance(sources, list) or not sources:
        raise ConfigError("'pdf_urls' must be a non-empty list", config_path)
    if "cache_time" not in data:
        raise ConfigError("'cache_time' is required", config_path)

    try:
        cache_time = parse_duration(data["cache_time"])
        request_timeout = parse_duration(
            data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
        ).total_seconds()
        if request_timeout <= 0:
            raise ConfigError(f"'request_timeout' must be positive, got {request_timeout}")
        pdf_dpi = _positive_int(data.get("pdf_dpi", DEFAULT_PDF_DPI), "pdf_dpi")
        cache_dir = _cache_dir(data.get("cache_dir", DEFAULT_CACHE_DIR))
        landing = _landing_from_mapping(data.get("landing_page"))
    except ConfigError as exc:
        raise ConfigError(f"{exc} ({config_path})", config_path) from exc

    config = CoverConfig(
        sources=[str(item) for item in sources],
        cache_time=cache_time,
        cache_dir=cache_dir,
        request_timeout=request_timeout,
        pdf_dpi=pdf_dpi,
        landing=landing,
    )
    logger.info("Configuration loaded successfully (%d sources)", len(config.sources))
    return config
