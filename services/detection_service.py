"""
Detection service owning the live sample window, the execution log and the alert manager, and running detection passes over them.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from config import settings
from connectors.enrichment import EnrichmentClient
from engine.alerts.manager import AlertManager
from engine.errors import ValidationError
from engine.pipeline import PassReport, run_pass
from engine.thresholds import ThresholdConfig, ThresholdRegistry, get_thresholds
from engine.window import ExecutionLog, MetricSample, MetricsWindow, WorkflowExecution
from store import thresholds as threshold_store

log = logging.getLogger(__name__)


def _build_enricher() -> Optional[EnrichmentClient]:
    if not settings.enrichment_url:
        return None
    return EnrichmentClient(
        base_url=settings.enrichment_url,
        timeout=settings.enrichment_timeout,
        api_key=settings.enrichment_api_key,
    )


class DetectionService:
    def __init__(
        self,
        manager: Optional[AlertManager] = None,
        window: Optional[MetricsWindow] = None,
        executions: Optional[ExecutionLog] = None,
        registry: Optional[ThresholdRegistry] = None,
    ) -> None:
        self.window = window or MetricsWindow()
        self.executions = executions or ExecutionLog()
        self.registry = registry or get_thresholds()
        self.manager = manager or AlertManager(enricher=_build_enricher())
        self.last_report: Optional[PassReport] = None
        self._pass_lock = asyncio.Lock()

    def ingest_samples(self, raw_samples: Iterable[Mapping[str, Any]]) -> int:
        try:
            samples = [MetricSample.parse(raw) for raw in raw_samples]
        except ValidationError as exc:
            log.warning("Rejected sample batch: %s", exc)
            raise
        self.window.record_many(samples)
        return len(samples)

    def ingest_execution(self, raw: Mapping[str, Any]) -> WorkflowExecution:
        try:
            execution = WorkflowExecution.parse(raw)
        except ValidationError as exc:
            log.warning("Rejected execution record: %s", exc)
            raise
        self.executions.record(execution)
        return execution

    async def run_once(self, now: Optional[float] = None) -> PassReport:
        # passes never overlap; a tick arriving mid-pass waits for it
        async with self._pass_lock:
            report = await run_pass(
                self.window.snapshot(),
                self.executions.snapshot(),
                self.manager,
                self.registry.get(),
                now,
            )
            self.last_report = report
            return report

    def thresholds(self) -> ThresholdConfig:
        return self.registry.get()

    async def update_thresholds(self, values: Dict[str, Any]) -> ThresholdConfig:
        try:
            updated = self.registry.set(values)
        except ValidationError as exc:
            log.warning("Rejected threshold update: %s", exc)
            raise
        await threshold_store.save(updated.as_dict())
        return updated

    async def load_thresholds(self) -> ThresholdConfig:
        stored = await threshold_store.load()
        if not stored:
            return self.registry.get()
        try:
            loaded = self.registry.load(stored)
        except ValidationError as exc:
            log.warning("Ignoring stored thresholds: %s", exc)
            return self.registry.get()
        log.info("Loaded thresholds version %d", loaded.version)
        return loaded

    async def shutdown(self) -> None:
        await self.manager.drain()


_service: Optional[DetectionService] = None


def get_detection_service() -> DetectionService:
    global _service
    if _service is None:
        _service = DetectionService()
    return _service


def set_detection_service(service: Optional[DetectionService]) -> None:
    global _service
    _service = service
