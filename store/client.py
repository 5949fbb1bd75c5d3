"""
Redis access for small shared documents such as the threshold configuration, with an in-memory fallback while Redis is unreachable.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config import REDIS_URL, settings

log = logging.getLogger(__name__)

_redis_client: Any = None
_fallback: dict[str, str] = {}
_using_fallback = False
_init_lock: Optional[asyncio.Lock] = None
_retry_after_monotonic: float = 0.0


def _lock() -> asyncio.Lock:
    global _init_lock
    if _init_lock is None:
        _init_lock = asyncio.Lock()
    return _init_lock


def _remember(key: str, value: str) -> None:
    if key in _fallback or len(_fallback) < settings.store_fallback_max_items:
        _fallback[key] = value


async def get_redis() -> Any:
    global _redis_client, _using_fallback, _retry_after_monotonic

    if _redis_client is not None:
        return _redis_client
    if time.monotonic() < _retry_after_monotonic:
        _using_fallback = True
        return None

    async with _lock():
        if _redis_client is not None:
            return _redis_client
        if time.monotonic() < _retry_after_monotonic:
            _using_fallback = True
            return None
        timeout = settings.store_redis_op_timeout_seconds
        try:
            client = aioredis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=timeout,
                socket_timeout=timeout,
            )
            await asyncio.wait_for(client.ping(), timeout=timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as exc:
            _retry_after_monotonic = time.monotonic() + max(0.0, settings.store_redis_retry_cooldown_seconds)
            if not _using_fallback:
                log.warning("Redis unavailable (%s), using in-memory fallback", exc)
                _using_fallback = True
            return None
        _redis_client = client
        _retry_after_monotonic = 0.0
        _using_fallback = False
        log.info("Redis connected: %s", REDIS_URL)
        return _redis_client


async def redis_get(key: str) -> Optional[str]:
    client = await get_redis()
    if client is None:
        return _fallback.get(key)
    try:
        return await asyncio.wait_for(client.get(key), timeout=settings.store_redis_op_timeout_seconds)
    except (RedisError, OSError, asyncio.TimeoutError) as exc:
        log.debug("Redis GET error %s: %s", key, exc)
        return _fallback.get(key)


async def redis_set(key: str, value: str, ttl: Optional[int] = None) -> None:
    client = await get_redis()
    # the fallback mirrors every write so a Redis outage still serves the latest value
    _remember(key, value)
    if client is None:
        return
    try:
        if ttl:
            await asyncio.wait_for(client.setex(key, ttl, value), timeout=settings.store_redis_op_timeout_seconds)
        else:
            await asyncio.wait_for(client.set(key, value), timeout=settings.store_redis_op_timeout_seconds)
    except (RedisError, OSError, asyncio.TimeoutError) as exc:
        log.debug("Redis SET error %s: %s", key, exc)


async def redis_delete(key: str) -> None:
    _fallback.pop(key, None)
    client = await get_redis()
    if client is None:
        return
    try:
        await asyncio.wait_for(client.delete(key), timeout=settings.store_redis_op_timeout_seconds)
    except (RedisError, OSError, asyncio.TimeoutError) as exc:
        log.debug("Redis DEL error %s: %s", key, exc)


async def close() -> None:
    global _redis_client
    client, _redis_client = _redis_client, None
    if client is not None:
        await client.aclose()


def reset_fallback() -> None:
    global _redis_client, _using_fallback, _retry_after_monotonic, _init_lock
    _fallback.clear()
    _redis_client = None
    _using_fallback = False
    _retry_after_monotonic = 0.0
    _init_lock = None


def is_using_fallback() -> bool:
    return _using_fallback
