"""Process and network snapshot dataclasses."""

from dataclasses import dataclass
from typing import Optional

SORT_CPU = "cpu"
SORT_MEMORY = "mem"
SORT_NAME = "name"
SORT_KEYS = (SORT_CPU, SORT_MEMORY, SORT_NAME)
SORT_LABELS = {SORT_CPU: "CPU %", SORT_MEMORY: "Memory", SORT_NAME: "Name"}

ORDER_ASCENDING = "asc"
ORDER_DESCENDING = "desc"


def toggle_order(order):
    if order == ORDER_ASCENDING:
        return ORDER_DESCENDING
    return ORDER_ASCENDING


@dataclass(frozen=True)
class ProcessRecord:
    """One process as seen by a single snapshot."""

    pid: int
    name: str
    cpu_percent: Optional[float] = None  # None when unavailable
    memory_bytes: Optional[int] = None  # resident set size
    parent_pid: Optional[int] = None


@dataclass(frozen=True)
class InterfaceCounters:
    name: str
    rx_bytes: int
    tx_bytes: int


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time capture of the process table and network counters.

    ``taken_at`` is a monotonic clock reading in seconds; only differences
    between two snapshots are meaningful.
    """

    taken_at: float
    records: tuple = ()
    net_rx_bytes: int = 0
    net_tx_bytes: int = 0
    interfaces: tuple = ()

    @classmethod
    def empty(cls, taken_at):
        return cls(taken_at=taken_at)


@dataclass(frozen=True)
class NetworkRates:
    rx_bytes_per_sec: float
    tx_bytes_per_sec: float
