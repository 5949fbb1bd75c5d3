"""
Threshold configuration persistence.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from config import THRESHOLDS_TTL
from store import keys
from store.client import redis_delete, redis_get, redis_set

log = logging.getLogger(__name__)


async def load() -> Optional[Dict[str, Any]]:
    raw = await redis_get(keys.thresholds())
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        log.warning("Stored thresholds are not valid JSON: %s", exc)
        return None
    if not isinstance(payload, dict):
        return None
    return payload


async def save(values: Dict[str, Any]) -> None:
    await redis_set(keys.thresholds(), json.dumps(values), ttl=THRESHOLDS_TTL or None)


async def delete() -> None:
    await redis_delete(keys.thresholds())
