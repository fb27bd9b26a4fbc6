"""Load ``refresh_rate`` and ``default_sort`` from a TOML file.

Every problem falls back to the documented default for the affected key;
nothing here ever aborts startup.
"""

import logging

import toml

from .models import SORT_CPU, SORT_KEYS
from .scheduler import DEFAULT_REFRESH_INTERVAL_MS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.toml"
DEFAULT_SORT = SORT_CPU


def parse_refresh_rate(value):
    if value is None:
        return DEFAULT_REFRESH_INTERVAL_MS
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning(
            "invalid refresh_rate %r; using %d ms", value, DEFAULT_REFRESH_INTERVAL_MS
        )
        return DEFAULT_REFRESH_INTERVAL_MS
    return value


def parse_default_sort(value):
    if value is None:
        return DEFAULT_SORT
    normalized = str(value).strip().lower()
    if normalized not in SORT_KEYS:
        logger.warning("unknown default_sort %r; using %r", value, DEFAULT_SORT)
        return DEFAULT_SORT
    return normalized


def parse_config(data):
    """Validate a decoded TOML mapping into ``{"refresh_rate", "default_sort"}``."""
    if not isinstance(data, dict):
        data = {}
    return {
        "refresh_rate": parse_refresh_rate(data.get("refresh_rate")),
        "default_sort": parse_default_sort(data.get("default_sort")),
    }


def load_config(path=DEFAULT_CONFIG_PATH):
    try:
        with open(path, encoding="utf-8") as f:
            data = toml.load(f)
    except FileNotFoundError:
        logger.info("no config file at %s; using defaults", path)
        data = {}
    except (OSError, UnicodeDecodeError, toml.TomlDecodeError) as e:
        logger.warning("could not read config %s (%s); using defaults", path, e)
        data = {}
    return parse_config(data)
