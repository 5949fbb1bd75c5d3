"""
Trend prediction over the two most recent sub-windows of a target's history, with heuristic probability and time-to-failure estimates.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from engine.enums import IssueKind, Severity
from engine.issues import Issue, rules
from engine.window.buffer import TargetKey, WindowSnapshot
from config import settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendSignal:
    recent_failures: int
    previous_failures: int
    ratio: float
    probability: float
    timeframe_hours: float


def _ratio(recent: int, previous: int) -> float:
    # no failures in the older sub-window: the raw count stands in for the ratio
    if previous == 0:
        return float(recent)
    return recent / previous


def probability(recent: int, previous: int) -> float:
    ratio = min(_ratio(recent, previous), settings.trend_probability_ratio_cap)
    score = (
        settings.trend_probability_base
        + settings.trend_probability_ratio_weight * ratio
        + settings.trend_probability_count_weight * max(0, recent - settings.trend_min_failures)
    )
    return round(max(0.0, min(settings.trend_probability_max, score)), 1)


def timeframe_hours(recent: int, previous: int, window: int) -> float:
    ratio = max(_ratio(recent, previous), 1.0)
    headroom = max(0.0, 1.0 - recent / window)
    hours = settings.trend_horizon_hours * headroom / ratio
    return round(max(settings.trend_min_timeframe_hours, hours), 1)


def analyze(recent_failures: int, previous_failures: int, window: int | None = None) -> Optional[TrendSignal]:
    if window is None:
        window = settings.trend_window
    if not rules.exceeds(
        recent_failures, previous_failures, settings.trend_failure_ratio, settings.trend_min_failures
    ):
        return None
    return TrendSignal(
        recent_failures=recent_failures,
        previous_failures=previous_failures,
        ratio=round(_ratio(recent_failures, previous_failures), 3),
        probability=probability(recent_failures, previous_failures),
        timeframe_hours=timeframe_hours(recent_failures, previous_failures, window),
    )


def evaluate_target(snapshot: WindowSnapshot, target: TargetKey) -> List[Issue]:
    window = settings.trend_window
    history = snapshot.samples(target)
    if len(history) < window * 2:
        return []
    latest = history[-window * 2:]
    previous, recent = latest[:window], latest[window:]

    signal = analyze(rules.failure_count(recent), rules.failure_count(previous), window)
    if signal is None:
        return []

    target_type, name = target
    return [Issue(
        kind=IssueKind.degrading_trend,
        target_type=target_type,
        target_name=name,
        severity=Severity.from_probability(signal.probability),
        current_value=float(signal.recent_failures),
        baseline_value=float(signal.previous_failures),
        deviation_pct=rules.deviation_pct(signal.recent_failures, signal.previous_failures),
        affected=(name,),
        probability=signal.probability,
        timeframe_hours=signal.timeframe_hours,
        title=f"Predicted failure: {name}",
        message=(
            f"{signal.probability:.0f}% probability within {signal.timeframe_hours}h: "
            f"{signal.recent_failures} failures in the last {window} operations "
            f"versus {signal.previous_failures} in the {window} before"
        ),
    )]


def predict(snapshot: WindowSnapshot) -> List[Issue]:
    issues: List[Issue] = []
    for target in snapshot.targets():
        try:
            issues.extend(evaluate_target(snapshot, target))
        except Exception:
            log.exception("Trend evaluation failed for %s/%s", target[0].value, target[1])
    return issues


def forwardable(issues: Iterable[Issue]) -> List[Issue]:
    cutoff = settings.prediction_forward_probability
    return [i for i in issues if i.probability is None or i.probability > cutoff]
