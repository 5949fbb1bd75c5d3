"""
Alert lifecycle management: turns issues into deduplicated alerts, drives acknowledge/resolve transitions and attaches enrichment after creation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import functools
import logging
import uuid
import weakref
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from config import settings
from connectors.enrichment import EnrichmentClient
from connectors.exceptions import EnrichmentError
from engine.alerts.fingerprint import fingerprint
from engine.alerts.models import Alert, AlertFilter
from engine.alerts.prompts import build_prompt
from engine.enums import AlertStatus, Severity
from engine.errors import AlertNotFound, InvalidTransition, PersistenceError
from engine.issues.models import Issue
from store import alerts as alert_store

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _severity(issue: Issue) -> Severity:
    if issue.is_prediction:
        return Severity.from_probability(float(issue.probability))
    return issue.severity


def _from_issue(issue: Issue, fp: str, now: datetime) -> Alert:
    return Alert(
        id=str(uuid.uuid4()),
        fingerprint=fp,
        alert_type=issue.kind,
        severity=_severity(issue),
        target_type=issue.target_type,
        target_name=issue.target_name,
        title=issue.title or f"{issue.kind.value}: {issue.target_name}",
        message=issue.message,
        status=AlertStatus.active,
        created_at=now,
        current_value=issue.current_value,
        baseline_value=issue.baseline_value,
        deviation_percentage=issue.deviation_pct,
        affected=list(issue.affected),
        probability=issue.probability,
        timeframe_hours=issue.timeframe_hours,
    )


class AlertManager:
    def __init__(self, enricher: Optional[EnrichmentClient] = None, enrichment_timeout: Optional[float] = None) -> None:
        self._enricher = enricher
        self._enrichment_timeout = enrichment_timeout or settings.enrichment_timeout
        # entries vanish once no coroutine holds or waits on the lock
        self._fingerprint_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._alert_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._tasks: Set[asyncio.Future] = set()

    @property
    def enrichment_enabled(self) -> bool:
        return self._enricher is not None

    def _track(self, fut: asyncio.Future) -> None:
        self._tasks.add(fut)
        fut.add_done_callback(self._tasks.discard)

    async def _call(self, fn: Callable[..., Any], *args: Any, late: Optional[Callable[[Any], None]] = None) -> Any:
        """Run a blocking store call in a worker thread, bounded by the store timeout.

        The thread cannot be stopped once the wait gives up; its eventual
        result is handed to ``late`` so a write that still commits is not lost.
        """
        work = asyncio.ensure_future(asyncio.to_thread(fn, *args))
        try:
            return await asyncio.wait_for(asyncio.shield(work), timeout=settings.store_timeout_seconds)
        except asyncio.TimeoutError as exc:
            self._track(work)
            work.add_done_callback(functools.partial(self._settle, fn.__name__, late))
            raise PersistenceError(f"alert store call {fn.__name__} timed out") from exc

    @staticmethod
    def _settle(name: str, late: Optional[Callable[[Any], None]], work: asyncio.Future) -> None:
        if work.cancelled():
            return
        exc = work.exception()
        if exc is not None:
            log.warning("Alert store call %s failed after timing out: %s", name, exc)
            return
        if late is not None:
            late(work.result())

    @staticmethod
    def _lock(table: weakref.WeakValueDictionary[str, asyncio.Lock], key: str) -> asyncio.Lock:
        lock = table.get(key)
        if lock is None:
            lock = asyncio.Lock()
            table[key] = lock
        return lock

    def _schedule_enrichment(self, alert: Alert) -> None:
        if self._enricher is not None:
            self._track(asyncio.create_task(self._enrich(alert)))

    def _adopt_late(self, created: Optional[Alert]) -> None:
        if created is None:
            return
        log.warning("Alert %s committed after its store call timed out", created.id)
        self._schedule_enrichment(created)

    async def submit(self, issue: Issue) -> Optional[Alert]:
        """Create an alert for ``issue`` unless one is already live for its fingerprint.

        Returns the new alert, or None when the issue was deduplicated.
        Raises PersistenceError when the store is unreachable.
        """
        fp = fingerprint(issue.kind, issue.target_type, issue.target_name)
        async with self._lock(self._fingerprint_locks, fp):
            created = await self._call(
                alert_store.create_if_absent_live, _from_issue(issue, fp, _utcnow()), late=self._adopt_late
            )
        if created is None:
            log.debug("Issue %s for %s deduplicated against live alert", issue.kind.value, issue.target_name)
            return None
        log.info(
            "Alert %s created: %s (%s, %s)",
            created.id, created.alert_type.value, created.target_name, created.severity.value,
        )
        self._schedule_enrichment(created)
        return created

    async def _enrich(self, alert: Alert) -> None:
        try:
            result = await asyncio.wait_for(self._enricher.enrich(build_prompt(alert)), timeout=self._enrichment_timeout)
        except (EnrichmentError, asyncio.TimeoutError) as exc:
            log.warning("Enrichment failed for alert %s: %s", alert.id, exc or type(exc).__name__)
            return
        except Exception:
            log.exception("Unexpected enrichment failure for alert %s", alert.id)
            return
        try:
            attached = await self._call(
                alert_store.attach_enrichment, alert.id, result.analysis, list(result.recommended_actions)
            )
        except PersistenceError as exc:
            log.warning("Could not attach enrichment to alert %s: %s", alert.id, exc)
            return
        except Exception:
            log.exception("Unexpected failure attaching enrichment to alert %s", alert.id)
            return
        if attached:
            log.debug("Enrichment attached to alert %s", alert.id)

    async def _transition(self, alert_id: str, mutate: Callable[[Alert], Dict[str, Any]]) -> Alert:
        async with self._lock(self._alert_locks, alert_id):
            return await self._call(alert_store.update, alert_id, mutate)

    async def acknowledge(self, alert_id: str) -> Alert:
        def mutate(alert: Alert) -> Dict[str, Any]:
            if alert.status != AlertStatus.active:
                raise InvalidTransition(f"alert {alert_id} is {alert.status.value}, cannot acknowledge")
            return {
                "status": AlertStatus.acknowledged,
                "acknowledged_at": max(_utcnow(), alert.created_at),
            }

        updated = await self._transition(alert_id, mutate)
        log.info("Alert %s acknowledged", alert_id)
        return updated

    async def resolve(self, alert_id: str, resolver: Optional[str] = None) -> Alert:
        def mutate(alert: Alert) -> Dict[str, Any]:
            if alert.status not in AlertStatus.live():
                raise InvalidTransition(f"alert {alert_id} is already {alert.status.value}")
            floor = alert.acknowledged_at or alert.created_at
            return {
                "status": AlertStatus.resolved,
                "resolved_at": max(_utcnow(), floor),
                "resolved_by": resolver or None,
            }

        updated = await self._transition(alert_id, mutate)
        log.info("Alert %s resolved by %s", alert_id, resolver or "unknown")
        return updated

    async def get(self, alert_id: str) -> Alert:
        alert = await self._call(alert_store.get, alert_id)
        if alert is None:
            raise AlertNotFound(f"alert {alert_id} not found")
        return alert

    async def list(self, flt: Optional[AlertFilter] = None) -> List[Alert]:
        flt = flt or AlertFilter(limit=settings.alerts_list_limit)
        limit = max(1, min(int(flt.limit), settings.alerts_list_max))
        if limit != flt.limit:
            flt = AlertFilter(
                status=flt.status,
                severity=flt.severity,
                target_type=flt.target_type,
                target_name=flt.target_name,
                alert_type=flt.alert_type,
                limit=limit,
            )
        return await self._call(alert_store.query, flt)

    async def drain(self) -> None:
        """Wait for background enrichment and late store calls, including any they schedule."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
