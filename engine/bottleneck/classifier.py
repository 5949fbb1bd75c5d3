"""
Bottleneck classification: a set of independent threshold checks over a recent snapshot of samples and workflow executions. Checks that describe the fleet as a whole emit aggregate issues whose ``affected`` list names the contributing targets; per-target checks use the target's recent window.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from engine.enums import ExecutionStatus, IssueKind, Severity, TargetType
from engine.issues import Issue, rules
from engine.thresholds import ThresholdConfig
from engine.window.buffer import WindowSnapshot
from engine.window.executions import WorkflowExecution
from config import AGGREGATE_TARGET, settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BottleneckContext:
    snapshot: WindowSnapshot
    executions: Sequence[WorkflowExecution]
    thresholds: ThresholdConfig
    now: float

    @property
    def recent_executions(self) -> List[WorkflowExecution]:
        """Latest executions by last update, the population for rate and duration checks."""
        ordered = sorted(self.executions, key=lambda e: e.updated_at)
        size = settings.execution_snapshot_size
        return ordered[-size:] if size > 0 else []


def _slow_workflows(ctx: BottleneckContext) -> List[Issue]:
    limit = settings.slow_workflow_seconds
    slow = [
        e for e in ctx.recent_executions
        if e.status == ExecutionStatus.completed and e.duration_seconds > limit
    ]
    if not slow:
        return []
    avg = float(np.mean([e.duration_seconds for e in slow]))
    return [Issue(
        kind=IssueKind.slow_workflow,
        target_type=TargetType.workflow,
        target_name=AGGREGATE_TARGET,
        severity=Severity.medium,
        current_value=round(avg, 2),
        baseline_value=limit,
        deviation_pct=rules.deviation_pct(avg, limit),
        affected=tuple(rules.unique_names(e.workflow_name for e in slow)),
        title="Slow Workflow Executions Detected",
        message=(
            f"{len(slow)} workflows took longer than {limit:.0f}s (avg: {avg:.0f}s). "
            "Consider optimizing workflow steps or adding parallel execution"
        ),
    )]


def _agent_overload(ctx: BottleneckContext) -> List[Issue]:
    window = ctx.snapshot.trailing(settings.overload_window_seconds, ctx.now)
    workload = Counter(s.key for s in window)
    limit = settings.overload_max_samples
    overloaded = [(key[1], count) for key, count in workload.items() if count > limit]
    if not overloaded:
        return []
    peak = max(count for _, count in overloaded)
    return [Issue(
        kind=IssueKind.agent_overload,
        target_type=TargetType.agent,
        target_name=AGGREGATE_TARGET,
        severity=Severity.critical,
        current_value=float(peak),
        baseline_value=float(limit),
        deviation_pct=rules.deviation_pct(peak, limit),
        affected=tuple(rules.unique_names(name for name, _ in overloaded)),
        title="Agent Overload Detected",
        message=(
            f"{len(overloaded)} targets handling excessive load (>{limit} tasks/hour). "
            "Distribute load across more agents or scale agent capacity"
        ),
    )]


def _high_error_rate(ctx: BottleneckContext) -> List[Issue]:
    cutoff = ctx.now - settings.error_rate_window_seconds
    samples = [s for s in ctx.snapshot.latest(settings.error_rate_snapshot_size) if s.timestamp >= cutoff]
    if not samples:
        return []
    rate = rules.failure_rate(samples)
    limit = ctx.thresholds.error_rate_pct / 100.0
    if not rate > limit:
        return []
    failed = [s for s in samples if s.failed]
    return [Issue(
        kind=IssueKind.high_error_rate,
        target_type=TargetType.agent,
        target_name=AGGREGATE_TARGET,
        severity=Severity.critical,
        current_value=rules.as_pct(rate),
        baseline_value=ctx.thresholds.error_rate_pct,
        deviation_pct=rules.deviation_pct(rate, limit),
        affected=tuple(rules.unique_names(s.target_name for s in failed)),
        title="High Error Rate",
        message=(
            f"Error rate at {rate * 100:.1f}% ({len(failed)}/{len(samples)} operations failed). "
            "Review error logs and implement retry mechanisms"
        ),
    )]


def _workflow_failures(ctx: BottleneckContext) -> List[Issue]:
    executions = ctx.recent_executions
    total = len(executions)
    if total == 0:
        return []
    failed = [e for e in executions if e.status == ExecutionStatus.failed]
    fraction = len(failed) / total
    limit = settings.workflow_failure_fraction
    if not fraction > limit:
        return []
    return [Issue(
        kind=IssueKind.workflow_failures,
        target_type=TargetType.workflow,
        target_name=AGGREGATE_TARGET,
        severity=Severity.medium,
        current_value=rules.as_pct(fraction),
        baseline_value=rules.as_pct(limit),
        deviation_pct=rules.deviation_pct(fraction, limit),
        affected=tuple(rules.unique_names(e.workflow_name for e in failed)),
        title="Elevated Workflow Failure Rate",
        message=(
            f"{len(failed)} out of {total} workflows failed ({fraction * 100:.1f}%). "
            "Review workflow configurations and error handling strategies"
        ),
    )]


def _response_time_anomaly(ctx: BottleneckContext) -> List[Issue]:
    timed = [s for s in ctx.snapshot.latest(settings.latency_snapshot_size) if s.latency_ms is not None]
    if not timed:
        return []
    mean = rules.mean_latency(timed)
    if not mean:
        return []
    cutoff = mean * settings.latency_outlier_factor
    outliers = [s for s in timed if s.latency_ms > cutoff]
    if not len(outliers) > len(timed) * settings.latency_outlier_fraction:
        return []
    outlier_mean = rules.mean_latency(outliers)
    return [Issue(
        kind=IssueKind.response_time_anomaly,
        target_type=TargetType.agent,
        target_name=AGGREGATE_TARGET,
        severity=Severity.medium,
        current_value=round(outlier_mean, 2),
        baseline_value=round(mean, 2),
        deviation_pct=rules.deviation_pct(outlier_mean, mean),
        affected=tuple(rules.unique_names(s.target_name for s in outliers)),
        title="Response Time Anomalies",
        message=(
            f"{len(outliers)} operations significantly slower than average ({mean:.0f}ms). "
            "Investigate slow operations and optimize agent performance"
        ),
    )]


def _slow_responses(ctx: BottleneckContext) -> List[Issue]:
    limit_ms = ctx.thresholds.response_time_seconds * 1000.0
    issues: List[Issue] = []
    for target in ctx.snapshot.targets():
        recent = ctx.snapshot.recent(target)
        if len(recent) < settings.min_samples:
            continue
        avg = rules.mean_latency(recent)
        if avg is None or not avg > limit_ms:
            continue
        target_type, name = target
        issues.append(Issue(
            kind=IssueKind.slow_response,
            target_type=target_type,
            target_name=name,
            severity=Severity.medium,
            current_value=round(avg, 2),
            baseline_value=limit_ms,
            deviation_pct=rules.deviation_pct(avg, limit_ms),
            affected=(name,),
            title=f"Slow Responses: {name}",
            message=f"{name} averaging {avg / 1000:.1f}s response time; may cause delays in orchestration",
        ))
    return issues


def _low_success_rates(ctx: BottleneckContext) -> List[Issue]:
    floor = ctx.thresholds.success_rate_pct
    issues: List[Issue] = []
    for target in ctx.snapshot.targets():
        recent = ctx.snapshot.recent(target)
        if len(recent) < settings.success_rate_min_samples:
            continue
        success_pct = 100.0 - rules.as_pct(rules.failure_rate(recent))
        if not success_pct < floor:
            continue
        target_type, name = target
        issues.append(Issue(
            kind=IssueKind.low_success_rate,
            target_type=target_type,
            target_name=name,
            severity=Severity.medium,
            current_value=round(success_pct, 2),
            baseline_value=floor,
            deviation_pct=rules.deviation_pct(success_pct, floor),
            affected=(name,),
            title=f"Success Rate Degraded: {name}",
            message=f"Success rate dropped to {success_pct:.0f}%. Review configuration and recent errors",
        ))
    return issues


def _stuck_executions(ctx: BottleneckContext) -> List[Issue]:
    limit = settings.stuck_execution_seconds
    stuck = [
        e for e in ctx.executions
        if e.status == ExecutionStatus.running and ctx.now - e.updated_at > limit
    ]
    if not stuck:
        return []
    oldest = max(ctx.now - e.updated_at for e in stuck)
    return [Issue(
        kind=IssueKind.stuck_execution,
        target_type=TargetType.workflow,
        target_name=AGGREGATE_TARGET,
        severity=Severity.critical,
        current_value=round(oldest, 1),
        baseline_value=limit,
        deviation_pct=rules.deviation_pct(oldest, limit),
        affected=tuple(rules.unique_names(e.workflow_name for e in stuck)),
        title="Stuck Workflow Executions",
        message=(
            f"{len(stuck)} workflows have not progressed in {limit / 60:.0f}+ minutes. "
            "Manual intervention may be required"
        ),
    )]


def _workflow_failure_burst(ctx: BottleneckContext) -> List[Issue]:
    window = settings.failure_burst_window_seconds
    cutoff = ctx.now - window
    burst = [
        e for e in ctx.recent_executions
        if e.status == ExecutionStatus.failed and e.updated_at > cutoff
    ]
    floor = settings.failure_burst_min_failures
    if len(burst) < floor:
        return []
    return [Issue(
        kind=IssueKind.workflow_failure_burst,
        target_type=TargetType.workflow,
        target_name=AGGREGATE_TARGET,
        severity=Severity.critical,
        current_value=float(len(burst)),
        baseline_value=float(floor),
        deviation_pct=rules.deviation_pct(len(burst), floor),
        affected=tuple(rules.unique_names(e.workflow_name for e in burst)),
        title="Multiple Workflow Failures",
        message=(
            f"{len(burst)} workflows failed in the last {window / 60:.0f} minutes. "
            "Review failed workflows and error logs"
        ),
    )]


_CHECKS: tuple[Callable[[BottleneckContext], List[Issue]], ...] = (
    _slow_workflows,
    _agent_overload,
    _high_error_rate,
    _workflow_failures,
    _response_time_anomaly,
    _slow_responses,
    _low_success_rates,
    _stuck_executions,
    _workflow_failure_burst,
)


def classify(
    snapshot: WindowSnapshot,
    executions: Sequence[WorkflowExecution],
    thresholds: ThresholdConfig,
    now: float,
    checks: Optional[Sequence[Callable[[BottleneckContext], List[Issue]]]] = None,
) -> List[Issue]:
    ctx = BottleneckContext(snapshot=snapshot, executions=list(executions), thresholds=thresholds, now=now)
    issues: List[Issue] = []
    for check in checks or _CHECKS:
        try:
            issues.extend(check(ctx))
        except Exception:
            log.exception("Bottleneck check %s failed", check.__name__)
    return issues
