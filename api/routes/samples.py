"""
Ingestion routes for outcome samples and workflow execution records.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from fastapi import APIRouter, status

from api.requests import ExecutionRequest, SampleBatchRequest
from api.responses import IngestResponse
from api.routes.exception import handle_exceptions
from services.detection_service import get_detection_service

router = APIRouter(tags=["Ingestion"])


@router.post("/samples", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
@handle_exceptions
async def ingest_samples(req: SampleBatchRequest) -> IngestResponse:
    accepted = get_detection_service().ingest_samples(s.model_dump() for s in req.samples)
    return IngestResponse(accepted=accepted)


@router.post("/executions", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
@handle_exceptions
async def ingest_execution(req: ExecutionRequest) -> IngestResponse:
    get_detection_service().ingest_execution(req.model_dump(exclude_none=True))
    return IngestResponse(accepted=1)
