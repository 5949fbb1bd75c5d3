"""
Tests for the per-target sample window and the execution log.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import math

import pytest

from engine.enums import ExecutionStatus, SampleStatus, TargetType
from engine.errors import ValidationError
from engine.window import ExecutionLog, MetricSample, MetricsWindow, WorkflowExecution


def _sample(name="alpha", ts=0.0, status=SampleStatus.success, latency=100.0, target_type=TargetType.agent):
    return MetricSample(target_type=target_type, target_name=name, timestamp=ts, status=status, latency_ms=latency)


def test_recent_and_baseline_partition():
    window = MetricsWindow(retention=500, recent_size=20, baseline_size=80)
    for i in range(120):
        window.record(_sample(ts=float(i)))
    key = (TargetType.agent, "alpha")
    recent = window.recent(key)
    baseline = window.baseline(key)
    assert [s.timestamp for s in recent] == [float(i) for i in range(100, 120)]
    assert [s.timestamp for s in baseline] == [float(i) for i in range(20, 100)]


def test_short_history_has_small_baseline():
    window = MetricsWindow(retention=500, recent_size=20, baseline_size=80)
    for i in range(25):
        window.record(_sample(ts=float(i)))
    key = (TargetType.agent, "alpha")
    assert len(window.recent(key)) == 20
    assert len(window.baseline(key)) == 5


def test_retention_evicts_oldest():
    window = MetricsWindow(retention=5, recent_size=2, baseline_size=3)
    for i in range(8):
        window.record(_sample(ts=float(i)))
    assert [s.timestamp for s in window.samples((TargetType.agent, "alpha"))] == [3.0, 4.0, 5.0, 6.0, 7.0]
    assert len(window) == 5


def test_targets_are_keyed_by_type_and_name():
    window = MetricsWindow()
    window.record(_sample(name="x", target_type=TargetType.agent))
    window.record(_sample(name="x", target_type=TargetType.workflow))
    assert set(window.targets()) == {(TargetType.agent, "x"), (TargetType.workflow, "x")}


def test_snapshot_is_isolated_from_later_writes():
    window = MetricsWindow()
    window.record(_sample(ts=1.0))
    snap = window.snapshot()
    window.record(_sample(ts=2.0))
    assert len(snap.samples((TargetType.agent, "alpha"))) == 1
    assert len(window.samples((TargetType.agent, "alpha"))) == 2


def test_snapshot_trailing_and_latest_are_time_ordered():
    window = MetricsWindow()
    window.record(_sample(name="b", ts=30.0))
    window.record(_sample(name="a", ts=10.0))
    window.record(_sample(name="a", ts=20.0))
    snap = window.snapshot()
    assert [s.timestamp for s in snap.latest(2)] == [20.0, 30.0]
    assert [s.timestamp for s in snap.trailing(15.0, now=35.0)] == [20.0, 30.0]


@pytest.mark.parametrize(
    "raw",
    [
        {"target_name": "", "timestamp": 1, "status": "success"},
        {"target_name": "a", "timestamp": math.nan, "status": "success"},
        {"target_name": "a", "timestamp": 1, "status": "maybe"},
        {"target_name": "a", "timestamp": 1, "status": "failure", "latency_ms": -5},
        {"target_name": "a", "timestamp": 1, "status": "success", "target_type": "robot"},
    ],
)
def test_malformed_samples_are_rejected(raw):
    with pytest.raises(ValidationError):
        MetricSample.parse(raw)


def test_parse_defaults_to_agent_target():
    sample = MetricSample.parse({"target_name": "a", "timestamp": 5, "status": "failure"})
    assert sample.target_type == TargetType.agent
    assert sample.failed
    assert sample.latency_ms is None


def test_record_many_rejects_whole_batch():
    window = MetricsWindow()
    good = _sample(ts=1.0)
    bad = MetricSample(
        target_type=TargetType.agent, target_name="alpha", timestamp=2.0, status=SampleStatus.success, latency_ms=-1.0
    )
    with pytest.raises(ValidationError):
        window.record_many([good, bad])
    assert len(window) == 0


def test_execution_log_upserts_by_id():
    log = ExecutionLog(retention=10)
    log.record(WorkflowExecution("e1", "wf", ExecutionStatus.running, 0.0, 0.0))
    log.record(WorkflowExecution("e1", "wf", ExecutionStatus.completed, 0.0, 400.0))
    log.record(WorkflowExecution("e2", "wf", ExecutionStatus.running, 10.0, 10.0))
    items = log.snapshot()
    assert len(items) == 2
    assert items[0].status == ExecutionStatus.completed
    assert items[0].duration_seconds == 400.0


def test_execution_updated_before_start_is_rejected():
    with pytest.raises(ValidationError):
        WorkflowExecution.parse(
            {"execution_id": "e", "workflow_name": "wf", "status": "running", "started_at": 10, "updated_at": 5}
        )
