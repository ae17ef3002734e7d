from __future__ import annotations

import logging
import time
from collections import deque
from datetime import datetime, timezone

import psutil

from devhub.core.events import Observable
from devhub.models import LogEntry, LogLevel, MetricsSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 500


class LogStream(Observable[LogEntry]):
    """Bounded, append-only feed of user-facing status events.

    Holds at most ``capacity`` entries; appending beyond that drops the
    oldest. A metrics snapshot is kept alongside and replaced wholesale on
    every update.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        super().__init__()
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._metrics = MetricsSnapshot()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or DEFAULT_CAPACITY

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, level: LogLevel | str, message: str) -> LogEntry:
        entry = LogEntry(level=LogLevel(level), message=message)
        self._entries.append(entry)
        self._notify(entry)
        return entry

    def info(self, message: str) -> LogEntry:
        return self.append(LogLevel.INFO, message)

    def success(self, message: str) -> LogEntry:
        return self.append(LogLevel.SUCCESS, message)

    def warn(self, message: str) -> LogEntry:
        return self.append(LogLevel.WARN, message)

    def error(self, message: str) -> LogEntry:
        return self.append(LogLevel.ERROR, message)

    def extend(self, entries: list[LogEntry]) -> None:
        """Restore previously persisted entries without notifying observers."""
        self._entries.extend(entries)

    def tail(self, n: int) -> list[LogEntry]:
        """Return the ``n`` most recent entries, newest first."""
        if n <= 0:
            return []
        count = min(n, len(self._entries))
        return [self._entries[-i] for i in range(1, count + 1)]

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def metrics(self) -> MetricsSnapshot:
        return self._metrics

    def update_metrics(
        self,
        cpu_percent: float | None = None,
        memory_mb: float | None = None,
        data_rate_kbps: float | None = None,
    ) -> MetricsSnapshot:
        current = self._metrics
        self._metrics = MetricsSnapshot(
            cpu_percent=current.cpu_percent if cpu_percent is None else cpu_percent,
            memory_mb=current.memory_mb if memory_mb is None else memory_mb,
            data_rate_kbps=(
                current.data_rate_kbps if data_rate_kbps is None else data_rate_kbps
            ),
            updated_at=datetime.now(timezone.utc),
        )
        return self._metrics


class MetricsSampler:
    """Feed process CPU, memory and network throughput into a LogStream."""

    def __init__(self, stream: LogStream) -> None:
        self._stream = stream
        self._process = psutil.Process()
        self._last_bytes: int | None = None
        self._last_time: float | None = None

    def _total_bytes(self) -> int:
        counters = psutil.net_io_counters()
        if counters is None:
            return 0
        return counters.bytes_sent + counters.bytes_recv

    def sample(self, interval: float | None = None) -> MetricsSnapshot:
        cpu = self._process.cpu_percent(interval=interval)
        memory_mb = self._process.memory_info().rss / (1024 * 1024)

        now = time.monotonic()
        total = self._total_bytes()
        rate_kbps = 0.0
        if self._last_bytes is not None and self._last_time is not None:
            elapsed = now - self._last_time
            if elapsed > 0:
                rate_kbps = (total - self._last_bytes) * 8 / 1000 / elapsed
        self._last_bytes = total
        self._last_time = now

        logger.debug(
            "Sampled metrics: cpu=%.1f%% mem=%.1fMB rate=%.1fkbps",
            cpu,
            memory_mb,
            rate_kbps,
        )
        return self._stream.update_metrics(
            cpu_percent=cpu, memory_mb=memory_mb, data_rate_kbps=max(rate_kbps, 0.0)
        )
