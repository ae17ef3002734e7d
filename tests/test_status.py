from __future__ import annotations

import pytest

from devhub.core import LogStream, MetricsSampler
from devhub.models import LogLevel


def test_append_and_tail_newest_first():
    stream = LogStream(capacity=10)
    for i in range(5):
        stream.info(f"event {i}")

    tail = stream.tail(3)

    assert [entry.message for entry in tail] == ["event 4", "event 3", "event 2"]


def test_tail_returns_fewer_when_short():
    stream = LogStream(capacity=10)
    stream.warn("only one")

    assert len(stream.tail(5)) == 1
    assert stream.tail(0) == []


def test_capacity_drops_oldest():
    capacity = 8
    extra = 5
    stream = LogStream(capacity=capacity)
    for i in range(capacity + extra):
        stream.append(LogLevel.INFO, f"event {i}")

    assert len(stream) == capacity
    assert stream.entries()[0].message == f"event {extra}"
    tail = stream.tail(extra)
    expected = [f"event {i}" for i in range(capacity + extra - 1, capacity - 1, -1)]
    assert [entry.message for entry in tail] == expected


def test_append_accepts_level_names():
    stream = LogStream()
    entry = stream.append("SUCCESS", "connected")
    assert entry.level is LogLevel.SUCCESS

    with pytest.raises(ValueError):
        stream.append("DEBUG", "not a status level")


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        LogStream(capacity=0)


def test_subscribe_and_unsubscribe():
    stream = LogStream()
    seen: list[str] = []

    unsubscribe = stream.subscribe(lambda entry: seen.append(entry.message))
    stream.info("first")
    unsubscribe()
    stream.info("second")

    assert seen == ["first"]
    assert stream.observer_count == 0


def test_failing_observer_does_not_block_others():
    stream = LogStream()
    seen: list[str] = []

    def broken(_entry):
        raise RuntimeError("view torn down")

    stream.subscribe(broken)
    stream.subscribe(lambda entry: seen.append(entry.message))
    stream.error("boom")

    assert seen == ["boom"]
    assert len(stream) == 1


def test_metrics_are_overwritten_not_appended():
    stream = LogStream()
    stream.update_metrics(cpu_percent=12.0, memory_mb=128.0, data_rate_kbps=256.0)
    snapshot = stream.update_metrics(cpu_percent=30.0)

    assert snapshot.cpu_percent == 30.0
    assert snapshot.memory_mb == 128.0
    assert snapshot.data_rate_kbps == 256.0
    assert snapshot.updated_at is not None
    assert len(stream) == 0


def test_sampler_fills_metrics():
    stream = LogStream()
    sampler = MetricsSampler(stream)

    sampler.sample()
    snapshot = sampler.sample()

    assert snapshot.memory_mb > 0
    assert snapshot.cpu_percent >= 0
    assert snapshot.data_rate_kbps >= 0
    assert stream.metrics == snapshot
