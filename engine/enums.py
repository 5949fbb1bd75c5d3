"""
Enumerations for Severity, Targets, Sample/Execution Status, Issue Kinds and Alert Status

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum

from config import SEVERITY_WEIGHTS


class Severity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @classmethod
    def from_probability(cls, probability: float) -> Severity:
        from config import settings

        if probability > settings.prediction_high_probability:
            return cls.high
        return cls.medium

    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self.value]


class TargetType(str, Enum):
    agent = "agent"
    workflow = "workflow"


class SampleStatus(str, Enum):
    success = "success"
    failure = "failure"


class ExecutionStatus(str, Enum):
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class IssueKind(str, Enum):
    error_spike = "error_spike"
    performance_degradation = "performance_degradation"
    slow_workflow = "slow_workflow"
    agent_overload = "agent_overload"
    high_error_rate = "high_error_rate"
    workflow_failures = "workflow_failures"
    response_time_anomaly = "response_time_anomaly"
    degrading_trend = "degrading_trend"
    slow_response = "slow_response"
    low_success_rate = "low_success_rate"
    stuck_execution = "stuck_execution"
    workflow_failure_burst = "workflow_failure_burst"


class AlertStatus(str, Enum):
    active = "active"
    acknowledged = "acknowledged"
    resolved = "resolved"

    @classmethod
    def live(cls) -> tuple[AlertStatus, ...]:
        return (cls.active, cls.acknowledged)
