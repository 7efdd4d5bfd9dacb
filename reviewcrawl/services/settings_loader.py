import logging
import os
from dataclasses import fields
from typing import Mapping, Optional, get_type_hints

import yaml

from reviewcrawl.domain import CrawlerSettings

logger = logging.getLogger(__name__)

# Environment key -> CrawlerSettings field
_ENV_FIELDS = {
    "REVIEWCRAWL_BASE_URL": "base_url",
    "USER_AGENT": "user_agent",
    "HTTP_TIMEOUT": "request_timeout",
    "HTTP_FOLLOW_REDIRECTS": "follow_redirects",
    "MAX_RETRIES": "max_retries",
    "RETRY_DELAY": "retry_delay",
    "CRAWL_DELAY": "crawl_delay",
    "CRAWL_SCHEDULE": "schedule",
    "CRAWL_AUTO_SCHEDULE": "auto_schedule",
    "CRAWL_FULL_REFRESH_ON_SCHEDULE": "full_refresh_on_schedule",
}

_FIELD_NAMES = {f.name for f in fields(CrawlerSettings)}
_FIELD_TYPES = get_type_hints(CrawlerSettings)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE_VALUES:
            return True
        if v in _FALSE_VALUES:
            return False
    raise ValueError(value)


def _to_int(value) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(value)
    return int(value)


def _to_float(value) -> float:
    if isinstance(value, bool):
        raise ValueError(value)
    return float(value)


def _to_str(value) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError(value)
    return str(value)


_COERCERS = {bool: _to_bool, int: _to_int, float: _to_float, str: _to_str}


def coerce_settings(values: Mapping) -> dict:
    """Convert raw values (YAML, JSON, env strings) to the CrawlerSettings field types.

    Raises ValueError naming the offending field when a value cannot be converted.
    """
    coerced = {}
    for name, value in values.items():
        if name not in _FIELD_NAMES:
            raise ValueError(f"Unknown crawler setting: {name}")
        expected = _FIELD_TYPES[name]
        if value is None:
            raise ValueError(f"Setting {name} must not be empty")
        try:
            coerced[name] = _COERCERS[expected](value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value for {name}: {value!r} (expected {expected.__name__})") from None
    return coerced


def _load_yaml(settings_file: str) -> dict:
    """Read a YAML mapping of CrawlerSettings field names. Returns {} when unusable."""
    if not os.path.isfile(settings_file):
        logger.warning("Settings file %s not found; using environment values only", settings_file)
        return {}
    with open(settings_file, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Settings file %s does not contain a dictionary", settings_file)
        return {}
    values = {}
    for key, value in data.items():
        if key not in _FIELD_NAMES:
            logger.warning("Ignoring unknown setting %r in %s", key, settings_file)
            continue
        values[key] = value
    return values


def build_settings(env: Mapping, settings_file: Optional[str] = None) -> CrawlerSettings:
    """Build CrawlerSettings from container env values, overlaid with an optional YAML file.

    Env values that are None fall back to the CrawlerSettings defaults; YAML
    values win over env values.
    """
    values = {}
    for env_key, field_name in _ENV_FIELDS.items():
        value = env.get(env_key)
        if value is not None:
            values[field_name] = value
    if settings_file:
        values.update(_load_yaml(settings_file))
    settings = CrawlerSettings(**coerce_settings(values))
    logger.info("Crawler settings loaded: base_url=%s schedule=%s", settings.base_url, settings.schedule)
    return settings
