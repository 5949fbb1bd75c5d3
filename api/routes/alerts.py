"""
Alert read and lifecycle routes.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from api.requests import ResolveRequest
from api.responses import AlertListResponse, AlertResponse
from api.routes.exception import handle_exceptions
from config import settings
from engine.alerts.models import AlertFilter
from engine.enums import AlertStatus, IssueKind, Severity, TargetType
from services.detection_service import get_detection_service

router = APIRouter(tags=["Alerts"])


@router.get("/alerts", response_model=AlertListResponse)
@handle_exceptions
async def list_alerts(
    status: Optional[AlertStatus] = None,
    severity: Optional[Severity] = None,
    target_type: Optional[TargetType] = None,
    target_name: Optional[str] = None,
    alert_type: Optional[IssueKind] = None,
    limit: int = Query(default=settings.alerts_list_limit, ge=1),
) -> AlertListResponse:
    flt = AlertFilter(
        status=status,
        severity=severity,
        target_type=target_type,
        target_name=target_name,
        alert_type=alert_type,
        limit=limit,
    )
    alerts = await get_detection_service().manager.list(flt)
    return AlertListResponse(alerts=[AlertResponse.from_alert(a) for a in alerts], count=len(alerts))


@router.get("/alerts/{alert_id}", response_model=AlertResponse)
@handle_exceptions
async def get_alert(alert_id: str) -> AlertResponse:
    alert = await get_detection_service().manager.get(alert_id)
    return AlertResponse.from_alert(alert)


@router.post("/alerts/{alert_id}/acknowledge", response_model=AlertResponse)
@handle_exceptions
async def acknowledge_alert(alert_id: str) -> AlertResponse:
    alert = await get_detection_service().manager.acknowledge(alert_id)
    return AlertResponse.from_alert(alert)


@router.post("/alerts/{alert_id}/resolve", response_model=AlertResponse)
@handle_exceptions
async def resolve_alert(alert_id: str, req: Optional[ResolveRequest] = None) -> AlertResponse:
    resolver = req.resolver if req is not None else None
    alert = await get_detection_service().manager.resolve(alert_id, resolver)
    return AlertResponse.from_alert(alert)
