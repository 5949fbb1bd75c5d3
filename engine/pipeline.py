"""
One detection pass: evaluates an immutable snapshot of the fleet and submits every actionable issue to the alert manager.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from config import settings
from engine import anomaly, bottleneck, forecast
from engine.alerts.manager import AlertManager
from engine.alerts.models import Alert
from engine.errors import PersistenceError
from engine.issues.models import Issue
from engine.thresholds import ThresholdConfig
from engine.window import WindowSnapshot, WorkflowExecution

log = logging.getLogger(__name__)


@dataclass
class PassReport:
    started_at: float
    finished_at: float = 0.0
    threshold_version: int = 0
    issues: List[Issue] = field(default_factory=list)
    created: List[Alert] = field(default_factory=list)
    deduplicated: int = 0
    errors: List[str] = field(default_factory=list)
    partial: bool = False

    def summary(self) -> str:
        if not self.issues:
            return "No issues detected."
        parts = [f"{len(self.issues)} issue(s)", f"{len(self.created)} new alert(s)"]
        if self.deduplicated:
            parts.append(f"{self.deduplicated} already live")
        if self.errors:
            parts.append(f"{len(self.errors)} error(s)")
        prefix = "[PARTIAL] " if self.partial else ""
        return f"{prefix}{' | '.join(parts)}."


def _evaluate(snapshot: WindowSnapshot, report: PassReport) -> List[Issue]:
    issues: List[Issue] = []
    for target in snapshot.targets():
        for name, evaluate in (("anomaly", anomaly.evaluate_target), ("forecast", forecast.evaluate_target)):
            try:
                issues.extend(evaluate(snapshot, target))
            except Exception as exc:
                log.exception("%s evaluation failed for %s/%s", name, target[0].value, target[1])
                report.errors.append(f"{name} {target[0].value}/{target[1]}: {exc}")
    return issues


async def _submit_all(manager: AlertManager, issues: Sequence[Issue], report: PassReport) -> None:
    sem = asyncio.Semaphore(max(1, settings.max_parallel_submits))

    async def _one(issue: Issue) -> Optional[Alert]:
        async with sem:
            return await manager.submit(issue)

    results = await asyncio.gather(*[_one(i) for i in issues], return_exceptions=True)
    for issue, result in zip(issues, results):
        if isinstance(result, PersistenceError):
            report.partial = True
            report.errors.append(f"persist {issue.kind.value} {issue.target_name}: {result}")
            log.warning("Alert for %s/%s not persisted: %s", issue.kind.value, issue.target_name, result)
        elif isinstance(result, BaseException):
            report.partial = True
            report.errors.append(f"submit {issue.kind.value} {issue.target_name}: {result!r}")
            log.error("Submitting %s for %s failed", issue.kind.value, issue.target_name, exc_info=result)
        elif result is None:
            report.deduplicated += 1
        else:
            report.created.append(result)


async def run_pass(
    snapshot: WindowSnapshot,
    executions: Sequence[WorkflowExecution],
    manager: AlertManager,
    thresholds: ThresholdConfig,
    now: Optional[float] = None,
) -> PassReport:
    now = time.time() if now is None else now
    report = PassReport(started_at=now, threshold_version=thresholds.version)

    found = _evaluate(snapshot, report)
    found.extend(bottleneck.classify(snapshot, executions, thresholds, now))
    report.issues = forecast.forwardable(found)

    if report.issues:
        await _submit_all(manager, report.issues, report)
    report.finished_at = time.time()
    log.info("Detection pass finished: %s", report.summary())
    return report
