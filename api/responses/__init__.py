from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from engine.alerts.models import Alert
from engine.enums import AlertStatus, IssueKind, Severity, TargetType
from engine.issues.models import Issue
from engine.pipeline import PassReport
from engine.thresholds import ThresholdConfig


class AlertMetrics(BaseModel):
    current_value: Optional[float] = None
    baseline_value: Optional[float] = None
    deviation_percentage: Optional[float] = None


class AlertResponse(BaseModel):
    id: str
    fingerprint: str
    alert_type: IssueKind
    severity: Severity
    target_type: TargetType
    target_name: str
    title: str
    message: str
    metrics: AlertMetrics
    affected: List[str] = Field(default_factory=list)
    probability: Optional[float] = None
    timeframe_hours: Optional[float] = None
    analysis: Optional[str] = None
    recommended_actions: List[str] = Field(default_factory=list)
    status: AlertStatus
    created_at: datetime
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

    @classmethod
    def from_alert(cls, alert: Alert) -> AlertResponse:
        return cls(
            id=alert.id,
            fingerprint=alert.fingerprint,
            alert_type=alert.alert_type,
            severity=alert.severity,
            target_type=alert.target_type,
            target_name=alert.target_name,
            title=alert.title,
            message=alert.message,
            metrics=AlertMetrics(**alert.metrics),
            affected=list(alert.affected),
            probability=alert.probability,
            timeframe_hours=alert.timeframe_hours,
            analysis=alert.analysis,
            recommended_actions=list(alert.recommended_actions),
            status=alert.status,
            created_at=alert.created_at,
            acknowledged_at=alert.acknowledged_at,
            resolved_at=alert.resolved_at,
            resolved_by=alert.resolved_by,
        )


class AlertListResponse(BaseModel):
    alerts: List[AlertResponse]
    count: int


class IssueResponse(BaseModel):
    kind: IssueKind
    target_type: TargetType
    target_name: str
    severity: Severity
    current_value: float
    baseline_value: Optional[float] = None
    deviation_pct: Optional[float] = None
    affected: List[str] = Field(default_factory=list)
    probability: Optional[float] = None
    timeframe_hours: Optional[float] = None
    title: str = ""

    @classmethod
    def from_issue(cls, issue: Issue) -> IssueResponse:
        return cls(
            kind=issue.kind,
            target_type=issue.target_type,
            target_name=issue.target_name,
            severity=issue.severity,
            current_value=issue.current_value,
            baseline_value=issue.baseline_value,
            deviation_pct=issue.deviation_pct,
            affected=list(issue.affected),
            probability=issue.probability,
            timeframe_hours=issue.timeframe_hours,
            title=issue.title,
        )


class PassReportResponse(BaseModel):
    started_at: float
    finished_at: float
    threshold_version: int
    issues: List[IssueResponse]
    created: List[AlertResponse]
    deduplicated: int
    errors: List[str]
    partial: bool
    summary: str

    @classmethod
    def from_report(cls, report: PassReport) -> PassReportResponse:
        return cls(
            started_at=report.started_at,
            finished_at=report.finished_at,
            threshold_version=report.threshold_version,
            issues=[IssueResponse.from_issue(i) for i in report.issues],
            created=[AlertResponse.from_alert(a) for a in report.created],
            deduplicated=report.deduplicated,
            errors=list(report.errors),
            partial=report.partial,
            summary=report.summary(),
        )


class ThresholdsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response_time_seconds: float = Field(serialization_alias="responseTimeSeconds")
    success_rate_pct: float = Field(serialization_alias="successRatePct")
    error_rate_pct: float = Field(serialization_alias="errorRatePct")
    handoff_time_seconds: float = Field(serialization_alias="handoffTimeSeconds")
    version: int

    @classmethod
    def from_config(cls, cfg: ThresholdConfig) -> ThresholdsResponse:
        return cls(**cfg.as_dict())


class IngestResponse(BaseModel):
    accepted: int
