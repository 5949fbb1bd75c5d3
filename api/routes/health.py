"""
Health check route to verify service, database and store connectivity.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict

from fastapi import APIRouter

from api.routes.exception import handle_exceptions
from config import HEALTH_PATH
from database import connection_test
from services.detection_service import get_detection_service
from store.client import get_redis, is_using_fallback

router = APIRouter(tags=["Health"])


@router.get(HEALTH_PATH)
@handle_exceptions
async def health() -> Dict[str, Any]:
    await get_redis()
    db_ok = await asyncio.to_thread(connection_test)
    svc = get_detection_service()
    last = svc.last_report
    return {
        "status": "ok" if db_ok else "degraded",
        "store": "fallback" if is_using_fallback() else "redis",
        "database": "ok" if db_ok else "unavailable",
        "enrichment": "enabled" if svc.manager.enrichment_enabled else "disabled",
        "samples": len(svc.window),
        "threshold_version": svc.thresholds().version,
        "last_pass_partial": last.partial if last is not None else None,
    }
