"""
Manual detection trigger.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter

from api.requests import DetectionRunRequest
from api.responses import PassReportResponse
from api.routes.exception import handle_exceptions
from services.detection_service import get_detection_service

router = APIRouter(tags=["Detection"])


@router.post("/detection/run", response_model=PassReportResponse)
@handle_exceptions
async def run_detection(req: Optional[DetectionRunRequest] = None) -> PassReportResponse:
    report = await get_detection_service().run_once(now=req.now if req is not None else None)
    return PassReportResponse.from_report(report)
