"""
Detection pass tests: one threshold snapshot per pass, deduplication across passes and partial passes on store failure.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine import pipeline
from engine.alerts.manager import AlertManager
from engine.enums import IssueKind, SampleStatus, TargetType
from engine.errors import PersistenceError
from engine.thresholds import ThresholdConfig
from engine.window import MetricSample, MetricsWindow

NOW = 50_000.0


def _spiking_window():
    window = MetricsWindow(retention=500, recent_size=20, baseline_size=80)
    for i in range(100):
        failed = i >= 80 and i % 2 == 0
        window.record(MetricSample(
            TargetType.agent, "alpha", NOW - 200 + i,
            SampleStatus.failure if failed else SampleStatus.success, 200.0,
        ))
    return window


class RecordingManager:
    def __init__(self, fail=False):
        self.fail = fail
        self.submitted = []

    async def submit(self, issue):
        self.submitted.append(issue)
        if self.fail:
            raise PersistenceError("store down")
        return None


@pytest.mark.asyncio
async def test_pass_reports_issues_and_threshold_version():
    manager = RecordingManager()
    cfg = ThresholdConfig(error_rate_pct=50.0, version=4)
    report = await pipeline.run_pass(_spiking_window().snapshot(), [], manager, cfg, NOW)
    kinds = {i.kind for i in report.issues}
    assert IssueKind.error_spike in kinds
    assert IssueKind.high_error_rate not in kinds
    assert report.threshold_version == 4
    assert report.deduplicated == len(report.issues)
    assert not report.partial
    assert report.finished_at >= report.started_at


@pytest.mark.asyncio
async def test_predictions_below_cutoff_are_not_submitted():
    window = MetricsWindow(retention=500)
    for i in range(20):
        failed = (i < 2) or (10 <= i < 14)
        window.record(MetricSample(
            TargetType.workflow, "etl", NOW - 20 + i, SampleStatus.failure if failed else SampleStatus.success
        ))
    manager = RecordingManager()
    report = await pipeline.run_pass(window.snapshot(), [], manager, ThresholdConfig(error_rate_pct=90.0), NOW)
    assert IssueKind.degrading_trend not in {i.kind for i in manager.submitted}
    assert IssueKind.degrading_trend not in {i.kind for i in report.issues}


@pytest.mark.asyncio
async def test_store_failure_marks_pass_partial():
    manager = RecordingManager(fail=True)
    report = await pipeline.run_pass(_spiking_window().snapshot(), [], manager, ThresholdConfig(), NOW)
    assert report.partial
    assert report.errors
    assert report.created == []
    assert report.summary().startswith("[PARTIAL]")


@pytest.mark.asyncio
async def test_evaluation_error_is_isolated(monkeypatch):
    def boom(snapshot, target):
        raise RuntimeError("forecast bug")

    monkeypatch.setattr(pipeline.forecast, "evaluate_target", boom)
    report = await pipeline.run_pass(_spiking_window().snapshot(), [], RecordingManager(), ThresholdConfig(), NOW)
    assert any("forecast" in e for e in report.errors)
    assert IssueKind.error_spike in {i.kind for i in report.issues}


@pytest.mark.asyncio
async def test_repeated_passes_deduplicate(alert_db):
    manager = AlertManager()
    snapshot = _spiking_window().snapshot()
    first = await pipeline.run_pass(snapshot, [], manager, ThresholdConfig(), NOW)
    second = await pipeline.run_pass(snapshot, [], manager, ThresholdConfig(), NOW)
    assert first.created
    assert second.created == []
    assert second.deduplicated == len(second.issues)
    assert {a.fingerprint for a in first.created} == {
        a.fingerprint for a in await manager.list()
    }
