"""Terminal color depth detection and CPU load coloring."""

from __future__ import annotations

import logging
from typing import Mapping

logger = logging.getLogger(__name__)

COLOR_MODE_AUTO = "auto"
COLOR_MODE_MONO = "mono"
COLOR_MODE_BASIC = "basic"
COLOR_MODE_256 = "xterm256"

COLOR_MODE_ENV = "PROCTOP_COLOR_MODE"

_MODE_ALIASES = {
    "mono": COLOR_MODE_MONO,
    "none": COLOR_MODE_MONO,
    "basic": COLOR_MODE_BASIC,
    "16": COLOR_MODE_BASIC,
    "256": COLOR_MODE_256,
    "xterm256": COLOR_MODE_256,
}

_FALSY_ENV_VALUES = frozenset({"", "0", "false", "no", "off"})

# CPU% thresholds for the load colors: idle, busy, hot.
LOAD_BUSY = 25.0
LOAD_HOT = 75.0

# Palette indices per load level, for 8/16-color and xterm-256 terminals.
_BASIC_LOAD_COLORS = (2, 3, 1)
_XTERM_LOAD_COLORS = (34, 178, 160)


def parse_color_mode_override(raw: str | None) -> str | None:
    """Map a user-supplied mode name to a mode constant; None means detect."""
    key = (raw or "").strip().lower()
    if key in ("", COLOR_MODE_AUTO):
        return None
    return _MODE_ALIASES.get(key)


def is_truthy_env(value: str | None) -> bool:
    return value is not None and value.strip().lower() not in _FALSY_ENV_VALUES


def _palette_size(terminal) -> int:
    return int(getattr(terminal, "number_of_colors", 0) or 0)


def detect_color_mode(env: Mapping[str, str], terminal) -> str:
    styling_disabled = is_truthy_env(env.get("NO_COLOR")) or (
        env.get("TERM", "").strip().lower() == "dumb"
    )
    if styling_disabled:
        return COLOR_MODE_MONO

    styled = getattr(terminal, "does_styling", False) or is_truthy_env(
        env.get("FORCE_COLOR")
    )
    if not styled:
        return COLOR_MODE_MONO
    return COLOR_MODE_256 if _palette_size(terminal) >= 256 else COLOR_MODE_BASIC


def resolve_color_mode(env: Mapping[str, str], terminal) -> str:
    """Honor ``PROCTOP_COLOR_MODE`` if it names a mode, else detect."""
    raw = env.get(COLOR_MODE_ENV)
    override = parse_color_mode_override(raw)
    if override is not None:
        return override
    if raw is not None and raw.strip().lower() not in ("", COLOR_MODE_AUTO):
        logger.warning("invalid %s=%r; using auto detection", COLOR_MODE_ENV, raw)
    return detect_color_mode(env, terminal)


def load_level(cpu_percent: float | None) -> int:
    """0 for idle, 1 for busy, 2 for hot. Missing values count as idle."""
    if cpu_percent is None or cpu_percent != cpu_percent:
        return 0
    if cpu_percent >= LOAD_HOT:
        return 2
    if cpu_percent >= LOAD_BUSY:
        return 1
    return 0


def load_color_index(cpu_percent: float | None, mode: str, terminal) -> int | None:
    """Color index for a CPU% cell, or None to leave it uncolored."""
    colors = _palette_size(terminal)
    if mode == COLOR_MODE_MONO or colors <= 0:
        return None
    if mode == COLOR_MODE_256 and colors >= 256:
        palette = _XTERM_LOAD_COLORS
    else:
        palette = _BASIC_LOAD_COLORS
    return palette[load_level(cpu_percent)]
