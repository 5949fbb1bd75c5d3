"""
Alert records as seen by the engine and the presentation layer.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from engine.enums import AlertStatus, IssueKind, Severity, TargetType


@dataclass(frozen=True)
class Alert:
    id: str
    fingerprint: str
    alert_type: IssueKind
    severity: Severity
    target_type: TargetType
    target_name: str
    title: str
    message: str
    status: AlertStatus
    created_at: datetime
    current_value: Optional[float] = None
    baseline_value: Optional[float] = None
    deviation_percentage: Optional[float] = None
    affected: List[str] = field(default_factory=list)
    probability: Optional[float] = None
    timeframe_hours: Optional[float] = None
    analysis: Optional[str] = None
    recommended_actions: List[str] = field(default_factory=list)
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

    @property
    def metrics(self) -> Dict[str, Optional[float]]:
        return {
            "current_value": self.current_value,
            "baseline_value": self.baseline_value,
            "deviation_percentage": self.deviation_percentage,
        }

    @property
    def is_live(self) -> bool:
        return self.status in AlertStatus.live()


@dataclass(frozen=True)
class AlertFilter:
    status: Optional[AlertStatus] = None
    severity: Optional[Severity] = None
    target_type: Optional[TargetType] = None
    target_name: Optional[str] = None
    alert_type: Optional[IssueKind] = None
    limit: int = 50
