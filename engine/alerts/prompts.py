"""
Prompt text sent to the enrichment service for a freshly created alert.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from config import AGGREGATE_TARGET
from engine.alerts.models import Alert
from engine.enums import IssueKind


def _fmt(value: Optional[float], digits: int = 1) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def _subject(alert: Alert) -> str:
    if alert.target_name == AGGREGATE_TARGET:
        return f"the {alert.target_type.value} fleet"
    return f"{alert.target_type.value} {alert.target_name}"


def _error_spike(alert: Alert) -> str:
    return (
        f"Analyze this error spike for {_subject(alert)}:\n\n"
        f"Recent error rate: {_fmt(alert.current_value)}%\n"
        f"Baseline error rate: {_fmt(alert.baseline_value)}%\n"
        f"Increase: {_fmt(alert.deviation_percentage)}%\n\n"
        "Provide:\n"
        "1. Likely causes of this error spike\n"
        "2. Immediate recommended actions\n"
        "3. Whether this requires urgent attention"
    )


def _performance_degradation(alert: Alert) -> str:
    current = None if alert.current_value is None else alert.current_value / 1000
    baseline = None if alert.baseline_value is None else alert.baseline_value / 1000
    return (
        f"Analyze performance degradation for {_subject(alert)}:\n\n"
        f"Recent avg response time: {_fmt(current, 2)}s\n"
        f"Baseline avg response time: {_fmt(baseline, 2)}s\n"
        f"Slowdown: {_fmt(alert.deviation_percentage)}%\n\n"
        "What could cause this slowdown and how to fix it?"
    )


def _degrading_trend(alert: Alert) -> str:
    return (
        f"Failures for {_subject(alert)} are trending upwards.\n\n"
        f"Failures in the latest window: {_fmt(alert.current_value, 0)}\n"
        f"Failures in the window before: {_fmt(alert.baseline_value, 0)}\n"
        f"Estimated failure probability: {_fmt(alert.probability)}% "
        f"within {_fmt(alert.timeframe_hours)}h\n\n"
        "Explain the likely root cause and list preventive actions."
    )


def _bottleneck(alert: Alert) -> str:
    affected = ", ".join(alert.affected[:10]) or "none listed"
    return (
        f"A bottleneck was detected: {alert.title}\n\n"
        f"{alert.message}\n"
        f"Observed value: {_fmt(alert.current_value, 2)}\n"
        f"Affected: {affected}\n\n"
        "Provide an analysis of the bottleneck and concrete optimization steps."
    )


_BUILDERS: Dict[IssueKind, Callable[[Alert], str]] = {
    IssueKind.error_spike: _error_spike,
    IssueKind.performance_degradation: _performance_degradation,
    IssueKind.degrading_trend: _degrading_trend,
}


def build_prompt(alert: Alert) -> str:
    return _BUILDERS.get(alert.alert_type, _bottleneck)(alert)
