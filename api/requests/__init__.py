from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SampleRequest(BaseModel):
    target_type: str = "agent"
    target_name: str
    timestamp: float
    status: str
    latency_ms: Optional[float] = None
    context: Dict[str, Any] = Field(default_factory=dict)


class SampleBatchRequest(BaseModel):
    samples: List[SampleRequest] = Field(min_length=1)


class ExecutionRequest(BaseModel):
    execution_id: str = ""
    workflow_name: str
    status: str
    started_at: float
    updated_at: Optional[float] = None


class ThresholdsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    response_time_seconds: Optional[float] = Field(default=None, alias="responseTimeSeconds")
    success_rate_pct: Optional[float] = Field(default=None, alias="successRatePct")
    error_rate_pct: Optional[float] = Field(default=None, alias="errorRatePct")
    handoff_time_seconds: Optional[float] = Field(default=None, alias="handoffTimeSeconds")


class ResolveRequest(BaseModel):
    resolver: Optional[str] = Field(default=None, max_length=200)


class DetectionRunRequest(BaseModel):
    now: Optional[float] = None
