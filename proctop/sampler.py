"""Snapshot providers: psutil backend plus timeout isolation."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import psutil

from .models import InterfaceCounters, ProcessRecord, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_TIMEOUT = 2.0


class ProviderError(Exception):
    """Raised when the OS process/network enumeration fails as a whole."""


class SnapshotProvider:
    """Capability interface: ``sample()`` returns a fresh Snapshot."""

    def sample(self):
        raise NotImplementedError

    def close(self):
        pass


def _safe_float(value):
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return None


class PsutilSnapshotProvider(SnapshotProvider):
    """Enumerate processes and NIC counters through psutil."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock

    def sample(self):
        try:
            records = tuple(self._collect_processes())
            interfaces = tuple(self._collect_interfaces())
        except (psutil.Error, OSError) as e:
            raise ProviderError("process enumeration failed: {}".format(e)) from e
        return Snapshot(
            taken_at=self._clock(),
            records=records,
            net_rx_bytes=sum(iface.rx_bytes for iface in interfaces),
            net_tx_bytes=sum(iface.tx_bytes for iface in interfaces),
            interfaces=interfaces,
        )

    def _collect_processes(self):
        # process_iter caches Process objects between calls, so
        # cpu_percent(interval=None) measures since the previous sample.
        for proc in psutil.process_iter(attrs=["pid", "name", "ppid", "memory_info"]):
            try:
                info = proc.info
                try:
                    cpu_percent = _safe_float(proc.cpu_percent(interval=None))
                except psutil.AccessDenied:
                    cpu_percent = None
                memory_info = info.get("memory_info")
                memory_bytes = getattr(memory_info, "rss", None) if memory_info else None
                yield ProcessRecord(
                    pid=int(info.get("pid") or proc.pid),
                    name=str(info.get("name") or ""),
                    cpu_percent=cpu_percent,
                    memory_bytes=memory_bytes,
                    parent_pid=info.get("ppid"),
                )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

    def _collect_interfaces(self):
        counters = psutil.net_io_counters(pernic=True) or {}
        for name in sorted(counters):
            stats = counters[name]
            yield InterfaceCounters(
                name=name, rx_bytes=stats.bytes_recv, tx_bytes=stats.bytes_sent
            )


class TimeoutSnapshotProvider(SnapshotProvider):
    """Run another provider on a worker thread and give up after ``timeout``.

    A sample that is still running when the next one is requested is not
    restarted; the caller gets a ProviderError and keeps its old data.
    """

    def __init__(self, provider, timeout=DEFAULT_SAMPLE_TIMEOUT):
        self._provider = provider
        self._timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="proctop-sampler"
        )
        self._pending = None

    def sample(self):
        if self._pending is not None and not self._pending.done():
            raise ProviderError("previous sample still running")
        self._pending = self._executor.submit(self._provider.sample)
        try:
            return self._pending.result(timeout=self._timeout)
        except FutureTimeoutError as e:
            raise ProviderError(
                "sample timed out after {:.1f}s".format(self._timeout)
            ) from e

    def close(self):
        self._executor.shutdown(wait=False)
        self._provider.close()


def create_provider(sample_timeout=DEFAULT_SAMPLE_TIMEOUT):
    """Build the default provider stack."""
    provider = PsutilSnapshotProvider()
    # Prime per-process CPU counters; the first reading is always 0.0.
    try:
        provider.sample()
    except ProviderError as e:
        logger.warning("initial sample failed: %s", e)
    if sample_timeout and sample_timeout > 0:
        return TimeoutSnapshotProvider(provider, timeout=sample_timeout)
    return provider
