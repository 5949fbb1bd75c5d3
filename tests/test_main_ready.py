"""
Readiness and scheduler behavior tests for the API entry point.
"""

from __future__ import annotations

import asyncio
import json

import pytest

import main as app_main
from config import settings


@pytest.mark.asyncio
async def test_ready_endpoint_returns_503_when_not_ready():
    app_main._ready = False
    app_main._status = {"database": "ready"}
    response = await app_main.ready()
    payload = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 503
    assert payload["ready"] is False
    assert payload["components"]["database"] == "ready"


class CountingService:
    def __init__(self, fail_first=True):
        self.calls = 0
        self.fail_first = fail_first

    async def run_once(self):
        self.calls += 1
        if self.fail_first and self.calls == 1:
            raise RuntimeError("tick failed")

        class Report:
            partial = False

        return Report()


@pytest.mark.asyncio
async def test_detection_loop_survives_failing_tick(monkeypatch):
    real_sleep = asyncio.sleep

    async def fast_sleep(_):
        await real_sleep(0)

    monkeypatch.setattr(app_main.asyncio, "sleep", fast_sleep)
    svc = CountingService()
    task = asyncio.create_task(app_main._detection_loop(svc))
    while svc.calls < 3:
        await real_sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert app_main._status["detection"] == "ok"


@pytest.mark.asyncio
async def test_lifespan_starts_and_stops(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'life.db'}")
    monkeypatch.setattr(settings, "detection_enabled", False)
    async with app_main.lifespan(app_main.app):
        assert app_main._ready is True
        assert app_main._status["detection"] == "disabled"
    assert app_main._ready is False
