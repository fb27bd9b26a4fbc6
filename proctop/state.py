"""Runtime configuration dataclass."""

from dataclasses import dataclass

from .loop import DEFAULT_POLL_TIMEOUT

# A slow sample may hold up input for at most one interval, but never
# less than this many seconds.
MIN_SAMPLE_TIMEOUT = 0.5


@dataclass(frozen=True)
class AppConfig:
    """Immutable values computed once from args + config file."""

    refresh_interval_ms: int
    default_sort: str
    poll_timeout: float
    sample_timeout: float
    config_path: str


def create_app_config(args, file_config):
    """Merge CLI overrides on top of the validated config file values."""
    refresh_interval_ms = file_config["refresh_rate"]
    if getattr(args, "interval", None):
        refresh_interval_ms = args.interval

    default_sort = file_config["default_sort"]
    if getattr(args, "sort", None):
        default_sort = args.sort

    # Input polling must stay well under one refresh interval.
    poll_timeout = min(DEFAULT_POLL_TIMEOUT, refresh_interval_ms / 1000.0 / 2)

    return AppConfig(
        refresh_interval_ms=refresh_interval_ms,
        default_sort=default_sort,
        poll_timeout=poll_timeout,
        sample_timeout=max(MIN_SAMPLE_TIMEOUT, refresh_interval_ms / 1000.0),
        config_path=args.config,
    )
