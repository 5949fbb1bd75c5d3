"""
Bottleneck classification tests covering the fleet-wide and per-target checks.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from config import AGGREGATE_TARGET
from engine.bottleneck import classify
from engine.bottleneck.classifier import BottleneckContext
from engine.enums import ExecutionStatus, IssueKind, SampleStatus, Severity, TargetType
from engine.thresholds import ThresholdConfig
from engine.window import MetricSample, MetricsWindow, WorkflowExecution

NOW = 100_000.0


def _kinds(issues):
    return [i.kind for i in issues]


def _by_kind(issues, kind):
    return [i for i in issues if i.kind == kind]


def _snapshot(samples):
    window = MetricsWindow(retention=500)
    for s in samples:
        window.record(s)
    return window.snapshot()


def test_empty_inputs_classify_nothing():
    assert classify(_snapshot([]), [], ThresholdConfig(), NOW) == []


def test_slow_workflows_aggregate_distinct_names():
    executions = [
        WorkflowExecution(f"e{i}", f"wf-{i}", ExecutionStatus.completed, 0.0, 400.0 if i < 4 else 60.0)
        for i in range(10)
    ]
    issues = _by_kind(classify(_snapshot([]), executions, ThresholdConfig(), NOW), IssueKind.slow_workflow)
    assert len(issues) == 1
    issue = issues[0]
    assert issue.target_name == AGGREGATE_TARGET
    assert issue.severity == Severity.medium
    assert issue.affected == ("wf-0", "wf-1", "wf-2", "wf-3")
    assert issue.current_value == 400.0


def test_running_executions_are_not_slow_but_can_be_stuck():
    executions = [WorkflowExecution("e1", "wf", ExecutionStatus.running, NOW - 4000, NOW - 2000)]
    issues = classify(_snapshot([]), executions, ThresholdConfig(), NOW)
    assert IssueKind.slow_workflow not in _kinds(issues)
    stuck = _by_kind(issues, IssueKind.stuck_execution)
    assert len(stuck) == 1
    assert stuck[0].severity == Severity.critical
    assert stuck[0].affected == ("wf",)


def _error_samples(failures, total):
    return [
        MetricSample(TargetType.agent, f"a{i % 3}", NOW - total + i,
                     SampleStatus.failure if i < failures else SampleStatus.success)
        for i in range(total)
    ]


def test_high_error_rate_follows_configured_threshold():
    cfg = ThresholdConfig(error_rate_pct=20.0)
    hot = _by_kind(classify(_snapshot(_error_samples(25, 100)), [], cfg, NOW), IssueKind.high_error_rate)
    assert len(hot) == 1
    assert hot[0].severity == Severity.critical
    assert hot[0].current_value == pytest.approx(25.0)
    assert hot[0].baseline_value == 20.0

    calm = _by_kind(classify(_snapshot(_error_samples(15, 100)), [], cfg, NOW), IssueKind.high_error_rate)
    assert calm == []


def test_agent_overload_counts_last_hour_only():
    busy = [MetricSample(TargetType.agent, "busy", NOW - i, SampleStatus.success) for i in range(60)]
    stale = [MetricSample(TargetType.agent, "stale", NOW - 7200 - i, SampleStatus.success) for i in range(60)]
    issues = _by_kind(classify(_snapshot(busy + stale), [], ThresholdConfig(), NOW), IssueKind.agent_overload)
    assert len(issues) == 1
    assert issues[0].affected == ("busy",)
    assert issues[0].current_value == 60.0


def test_workflow_failure_fraction():
    executions = [
        WorkflowExecution(f"e{i}", "wf-a" if i < 2 else "wf-b",
                          ExecutionStatus.failed if i < 2 else ExecutionStatus.completed, 0.0, 10.0)
        for i in range(10)
    ]
    issues = _by_kind(classify(_snapshot([]), executions, ThresholdConfig(), NOW), IssueKind.workflow_failures)
    assert len(issues) == 1
    assert issues[0].current_value == pytest.approx(20.0)
    assert issues[0].affected == ("wf-a",)


def test_response_time_anomaly():
    samples = []
    for i in range(100):
        latency = 10_000.0 if i < 25 else 100.0
        samples.append(MetricSample(TargetType.agent, f"a{i % 4}", NOW - 100 + i, SampleStatus.success, latency))
    ctx = BottleneckContext(_snapshot(samples), [], ThresholdConfig(), NOW)
    from engine.bottleneck.classifier import _response_time_anomaly

    issues = _response_time_anomaly(ctx)
    # mean 2575ms, cutoff 7725ms, 25 outliers > 20
    assert len(issues) == 1
    assert issues[0].current_value == 10_000.0
    assert issues[0].baseline_value == pytest.approx(2575.0)


def test_slow_response_and_low_success_per_target():
    samples = [
        MetricSample(TargetType.agent, "slow", NOW - 20 + i,
                     SampleStatus.failure if i < 5 else SampleStatus.success, 6000.0)
        for i in range(20)
    ]
    cfg = ThresholdConfig(response_time_seconds=5.0, success_rate_pct=80.0)
    issues = classify(_snapshot(samples), [], cfg, NOW)
    slow = _by_kind(issues, IssueKind.slow_response)
    low = _by_kind(issues, IssueKind.low_success_rate)
    assert [i.target_name for i in slow] == ["slow"]
    assert slow[0].baseline_value == 5000.0
    assert [i.target_name for i in low] == ["slow"]
    assert low[0].current_value == 75.0


def test_failing_check_does_not_block_others():
    def broken(ctx):
        raise ValueError("bad check")

    def fine(ctx):
        return ["ok"]

    assert classify(_snapshot([]), [], ThresholdConfig(), NOW, checks=[broken, fine]) == ["ok"]


def test_stale_failures_do_not_keep_fleet_checks_firing():
    stale = [MetricSample(TargetType.agent, f"a{i % 3}", NOW - 86_400 + i, SampleStatus.failure) for i in range(300)]
    fresh = [MetricSample(TargetType.agent, f"a{i % 3}", NOW - 200 + i, SampleStatus.success) for i in range(200)]
    old_runs = [
        WorkflowExecution(f"old{i}", "wf-old", ExecutionStatus.failed, NOW - 90_000, NOW - 86_400 + i)
        for i in range(100)
    ]
    new_runs = [
        WorkflowExecution(f"new{i}", "wf-new", ExecutionStatus.completed, NOW - 900, NOW - 400 + i)
        for i in range(400)
    ]
    kinds = _kinds(classify(_snapshot(stale + fresh), old_runs + new_runs, ThresholdConfig(), NOW))
    assert IssueKind.high_error_rate not in kinds
    assert IssueKind.workflow_failures not in kinds
    assert IssueKind.workflow_failure_burst not in kinds


def test_workflow_failure_burst_in_last_ten_minutes():
    executions = [
        WorkflowExecution(f"e{i}", f"wf-{i % 2}", ExecutionStatus.failed, NOW - 700, NOW - 60 * i)
        for i in range(4)
    ]
    older = [WorkflowExecution("late", "wf-9", ExecutionStatus.failed, NOW - 2000, NOW - 900)]
    issues = _by_kind(classify(_snapshot([]), executions + older, ThresholdConfig(), NOW),
                      IssueKind.workflow_failure_burst)
    assert len(issues) == 1
    assert issues[0].severity == Severity.critical
    assert issues[0].current_value == 4.0
    assert sorted(issues[0].affected) == ["wf-0", "wf-1"]

    two = executions[:2] + older
    assert _by_kind(classify(_snapshot([]), two, ThresholdConfig(), NOW), IssueKind.workflow_failure_burst) == []


def test_agent_overload_keeps_agent_and_workflow_apart():
    shared = [MetricSample(TargetType.agent, "sync", NOW - i, SampleStatus.success) for i in range(30)]
    shared += [MetricSample(TargetType.workflow, "sync", NOW - i, SampleStatus.success) for i in range(30)]
    assert _by_kind(classify(_snapshot(shared), [], ThresholdConfig(), NOW), IssueKind.agent_overload) == []

    shared += [MetricSample(TargetType.agent, "sync", NOW - 30 - i, SampleStatus.success) for i in range(25)]
    issues = _by_kind(classify(_snapshot(shared), [], ThresholdConfig(), NOW), IssueKind.agent_overload)
    assert len(issues) == 1
    assert issues[0].affected == ("sync",)
    assert issues[0].current_value == 55.0
