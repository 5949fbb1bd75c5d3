"""
Detection logic for per-target anomalies: the failure rate and mean latency of the recent window are compared with the baseline window using ratio-and-floor checks, producing error spike and performance degradation issues.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from engine.enums import IssueKind, Severity
from engine.issues import Issue, rules
from engine.window.buffer import MetricSample, TargetKey, WindowSnapshot
from config import settings

log = logging.getLogger(__name__)


def _error_spike(target: TargetKey, recent: Sequence[MetricSample], baseline: Sequence[MetricSample]) -> Optional[Issue]:
    recent_rate = rules.failure_rate(recent)
    baseline_rate = rules.failure_rate(baseline)
    if not rules.exceeds(recent_rate, baseline_rate, settings.error_spike_ratio, settings.error_spike_min_rate):
        return None

    target_type, name = target
    return Issue(
        kind=IssueKind.error_spike,
        target_type=target_type,
        target_name=name,
        severity=Severity.high,
        current_value=rules.as_pct(recent_rate),
        baseline_value=rules.as_pct(baseline_rate),
        deviation_pct=rules.deviation_pct(recent_rate, baseline_rate),
        affected=(name,),
        title=f"Error Spike Detected: {name}",
        message=(
            f"Error rate increased from {baseline_rate * 100:.1f}% to {recent_rate * 100:.1f}% "
            f"({rules.failure_count(recent)} failures in the last {len(recent)} operations)"
        ),
    )


def _performance_degradation(
    target: TargetKey, recent: Sequence[MetricSample], baseline: Sequence[MetricSample]
) -> Optional[Issue]:
    recent_avg = rules.mean_latency(recent)
    baseline_avg = rules.mean_latency(baseline)
    if recent_avg is None or baseline_avg is None:
        return None
    if not rules.exceeds(
        recent_avg, baseline_avg, settings.latency_degradation_ratio, settings.latency_degradation_min_ms
    ):
        return None

    target_type, name = target
    return Issue(
        kind=IssueKind.performance_degradation,
        target_type=target_type,
        target_name=name,
        severity=Severity.medium,
        current_value=round(recent_avg, 2),
        baseline_value=round(baseline_avg, 2),
        deviation_pct=rules.deviation_pct(recent_avg, baseline_avg),
        affected=(name,),
        title=f"Performance Degradation: {name}",
        message=(
            f"Response time increased from {baseline_avg / 1000:.2f}s "
            f"to {recent_avg / 1000:.2f}s"
        ),
    )


def evaluate_target(snapshot: WindowSnapshot, target: TargetKey) -> List[Issue]:
    recent = snapshot.recent(target)
    if len(recent) < settings.min_samples:
        log.debug("Skipping %s/%s: %d recent samples", target[0].value, target[1], len(recent))
        return []
    baseline = snapshot.baseline(target)

    issues: List[Issue] = []
    for check in (_error_spike, _performance_degradation):
        issue = check(target, recent, baseline)
        if issue is not None:
            issues.append(issue)
    return issues


def detect(snapshot: WindowSnapshot) -> List[Issue]:
    issues: List[Issue] = []
    for target in snapshot.targets():
        try:
            issues.extend(evaluate_target(snapshot, target))
        except Exception:
            log.exception("Anomaly evaluation failed for %s/%s", target[0].value, target[1])
    return issues
