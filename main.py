"""
Entry point for the Fleet Pulse detection API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from api.routes import router
from config import settings
from database import init_database, init_db, dispose_database
from services.detection_service import DetectionService, get_detection_service
from store import client as store_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)

_ready = False
_status: Dict[str, str] = {}


async def _detection_loop(service: DetectionService) -> None:
    interval = max(1.0, settings.detection_interval_seconds)
    log.info("Detection loop started (interval=%.1fs)", interval)
    while True:
        await asyncio.sleep(interval)
        try:
            report = await service.run_once()
        except Exception:
            # a failed tick never stops the scheduler
            log.exception("Detection pass failed")
            _status["detection"] = "failing"
            continue
        _status["detection"] = "partial" if report.partial else "ok"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    global _ready

    init_database(settings.database_url)
    init_db()
    _status["database"] = "ready"

    service = get_detection_service()
    await service.load_thresholds()
    _status["thresholds"] = f"v{service.thresholds().version}"

    loop_task = None
    if settings.detection_enabled:
        loop_task = asyncio.create_task(_detection_loop(service))
        _status["detection"] = "scheduled"
    else:
        _status["detection"] = "disabled"
    _ready = True
    try:
        yield
    finally:
        _ready = False
        if loop_task is not None:
            loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await loop_task
        await service.shutdown()
        await store_client.close()
        dispose_database()


app = FastAPI(
    title="Fleet Pulse",
    description="Anomaly detection, bottleneck classification and alert lifecycle for an agent and workflow fleet.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.get("/api/v1/ready", tags=["Health"], summary="Readiness probe")
async def ready() -> JSONResponse:
    code = 200 if _ready else 503
    return JSONResponse(status_code=code, content={"ready": _ready, "components": _status})


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=4330,
        log_level="info",
        access_log=True,
    )
