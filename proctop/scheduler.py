"""Interval-driven snapshot refresh."""

import logging
import time

from .sampler import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_MS = 1000


def normalize_interval_ms(value):
    """Return a positive millisecond interval, falling back to the default."""
    if isinstance(value, bool):
        return DEFAULT_REFRESH_INTERVAL_MS
    try:
        value = int(value)
    except (TypeError, ValueError):
        return DEFAULT_REFRESH_INTERVAL_MS
    if value <= 0:
        return DEFAULT_REFRESH_INTERVAL_MS
    return value


class RefreshScheduler:
    """Pull a snapshot into the table at most once per interval.

    Timing is measured from the start of the last attempt, successful or
    not, so a failing provider is retried on the next tick rather than on
    every loop iteration. Under load the interval may slip but never runs
    fast.
    """

    def __init__(
        self,
        provider,
        table,
        interval_ms=DEFAULT_REFRESH_INTERVAL_MS,
        clock=time.monotonic,
    ):
        self._provider = provider
        self._table = table
        self._interval_s = normalize_interval_ms(interval_ms) / 1000.0
        self._clock = clock
        self._last_attempt = None
        self.last_success = None
        self.last_error = None
        self.consecutive_failures = 0

    @property
    def interval_s(self):
        return self._interval_s

    def due(self):
        if self._last_attempt is None:
            return True
        return self._clock() - self._last_attempt >= self._interval_s

    def tick(self):
        """Sample and ingest. Returns True if a new snapshot was stored."""
        started = self._clock()
        self._last_attempt = started
        try:
            snapshot = self._provider.sample()
        except ProviderError as e:
            self.consecutive_failures += 1
            self.last_error = str(e)
            logger.warning(
                "snapshot failed (%d in a row), keeping previous data: %s",
                self.consecutive_failures,
                e,
            )
            return False

        self._table.ingest(snapshot)
        self.last_success = self._clock()
        self.last_error = None
        self.consecutive_failures = 0
        logger.debug(
            "ingested %d processes in %.3fs",
            len(snapshot.records),
            self.last_success - started,
        )
        return True
