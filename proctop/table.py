"""Current/previous snapshot store and the filtered, sorted process view."""

import math

from .models import (
    ORDER_DESCENDING,
    SORT_CPU,
    SORT_MEMORY,
    SORT_NAME,
    NetworkRates,
)


def _is_missing(value):
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def _sort_value(record, sort_key):
    if sort_key == SORT_MEMORY:
        return record.memory_bytes
    if sort_key == SORT_NAME:
        return (record.name or "").lower()
    return record.cpu_percent


def matches_query(record, query):
    """Return True if the name or decimal pid text contains ``query``.

    The name test is case-insensitive. An empty query matches everything.
    """
    if not query:
        return True
    needle = query.lower()
    return needle in (record.name or "").lower() or needle in str(record.pid)


def sort_records(records, sort_key=SORT_CPU, sort_order=ORDER_DESCENDING):
    """Return a new list ordered by ``sort_key``.

    Ties are broken by pid ascending in both directions, and records whose
    sort value is missing (None or NaN) go last regardless of direction.
    """
    present = []
    missing = []
    for record in records:
        if sort_key != SORT_NAME and _is_missing(_sort_value(record, sort_key)):
            missing.append(record)
        else:
            present.append(record)

    # Python's sort is stable even with reverse=True, so the pid pre-sort
    # survives as the tie-break.
    present.sort(key=lambda record: record.pid)
    present.sort(
        key=lambda record: _sort_value(record, sort_key),
        reverse=sort_order == ORDER_DESCENDING,
    )
    missing.sort(key=lambda record: record.pid)
    return present + missing


def _rate(current, previous, elapsed_s):
    delta = current - previous
    if delta < 0:
        # Counter reset or interface went away; report no traffic.
        return 0.0
    return delta / elapsed_s


class ProcessTable:
    """Holds the latest snapshot plus the one before it."""

    def __init__(self):
        self.current = None
        self.previous = None

    def ingest(self, snapshot):
        self.previous = self.current
        self.current = snapshot

    @property
    def records(self):
        if self.current is None:
            return ()
        return self.current.records

    def visible_rows(self, view):
        rows = self.records
        if view.search_active or view.search_query:
            rows = [record for record in rows if matches_query(record, view.search_query)]
        return sort_records(rows, view.sort_key, view.sort_order)

    def _elapsed(self):
        if self.current is None or self.previous is None:
            return None
        elapsed_s = self.current.taken_at - self.previous.taken_at
        if elapsed_s <= 0:
            return None
        return elapsed_s

    def network_rates(self):
        elapsed_s = self._elapsed()
        if elapsed_s is None:
            return None
        return NetworkRates(
            rx_bytes_per_sec=_rate(
                self.current.net_rx_bytes, self.previous.net_rx_bytes, elapsed_s
            ),
            tx_bytes_per_sec=_rate(
                self.current.net_tx_bytes, self.previous.net_tx_bytes, elapsed_s
            ),
        )

    def interface_rates(self):
        """Per-interface rates for interfaces present in both snapshots."""
        elapsed_s = self._elapsed()
        if elapsed_s is None:
            return {}
        previous = {iface.name: iface for iface in self.previous.interfaces}
        rates = {}
        for iface in self.current.interfaces:
            before = previous.get(iface.name)
            if before is None:
                continue
            rates[iface.name] = NetworkRates(
                rx_bytes_per_sec=_rate(iface.rx_bytes, before.rx_bytes, elapsed_s),
                tx_bytes_per_sec=_rate(iface.tx_bytes, before.tx_bytes, elapsed_s),
            )
        return rates
