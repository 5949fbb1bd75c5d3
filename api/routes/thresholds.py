"""
Threshold configuration routes.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from fastapi import APIRouter

from api.requests import ThresholdsRequest
from api.responses import ThresholdsResponse
from api.routes.exception import handle_exceptions
from services.detection_service import get_detection_service

router = APIRouter(tags=["Thresholds"])


@router.get("/thresholds", response_model=ThresholdsResponse)
@handle_exceptions
async def get_thresholds() -> ThresholdsResponse:
    return ThresholdsResponse.from_config(get_detection_service().thresholds())


@router.put("/thresholds", response_model=ThresholdsResponse)
@handle_exceptions
async def put_thresholds(req: ThresholdsRequest) -> ThresholdsResponse:
    updated = await get_detection_service().update_thresholds(req.model_dump(exclude_none=True))
    return ThresholdsResponse.from_config(updated)
