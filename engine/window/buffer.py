"""
Per-target ring buffers of performance samples. The buffer is owned by the ingestion path; detectors only ever read slices or snapshots of it.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple

from engine.enums import SampleStatus, TargetType
from engine.errors import ValidationError
from config import settings

TargetKey = Tuple[TargetType, str]


@dataclass(frozen=True)
class MetricSample:
    target_type: TargetType
    target_name: str
    timestamp: float
    status: SampleStatus
    latency_ms: Optional[float] = None
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> TargetKey:
        return (self.target_type, self.target_name)

    @property
    def failed(self) -> bool:
        return self.status == SampleStatus.failure

    @classmethod
    def parse(cls, raw: Mapping[str, Any]) -> MetricSample:
        if not isinstance(raw, Mapping):
            raise ValidationError(f"sample must be a mapping, got {type(raw).__name__}")
        try:
            target_type = TargetType(raw.get("target_type", TargetType.agent))
        except ValueError as exc:
            raise ValidationError(f"unknown target_type {raw.get('target_type')!r}") from exc
        try:
            status = SampleStatus(raw.get("status"))
        except ValueError as exc:
            raise ValidationError(f"unknown status {raw.get('status')!r}") from exc

        sample = cls(
            target_type=target_type,
            target_name=raw.get("target_name"),
            timestamp=raw.get("timestamp"),
            status=status,
            latency_ms=raw.get("latency_ms"),
            context=dict(raw.get("context") or {}),
        )
        validate(sample)
        return sample


def _finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate(sample: MetricSample) -> None:
    if not isinstance(sample, MetricSample):
        raise ValidationError(f"expected MetricSample, got {type(sample).__name__}")
    if not isinstance(sample.target_name, str) or not sample.target_name.strip():
        raise ValidationError("sample is missing target_name")
    if not _finite(sample.timestamp):
        raise ValidationError(f"sample for {sample.target_name!r} is missing a valid timestamp")
    if not isinstance(sample.target_type, TargetType):
        raise ValidationError(f"unknown target_type {sample.target_type!r}")
    if not isinstance(sample.status, SampleStatus):
        raise ValidationError(f"unknown status {sample.status!r}")
    if sample.latency_ms is not None and (not _finite(sample.latency_ms) or sample.latency_ms < 0):
        raise ValidationError(f"invalid latency_ms {sample.latency_ms!r}")


def _split(history: List[MetricSample], recent_size: int, baseline_size: int) -> Tuple[List[MetricSample], List[MetricSample]]:
    end = max(0, len(history) - recent_size)
    start = max(0, end - baseline_size)
    return history[end:], history[start:end]


@dataclass(frozen=True)
class WindowSnapshot:
    """Point-in-time copy of every target's history, read by a single detection pass."""

    buffers: Dict[TargetKey, List[MetricSample]]
    recent_size: int
    baseline_size: int

    def targets(self) -> List[TargetKey]:
        return list(self.buffers)

    def samples(self, target: TargetKey) -> List[MetricSample]:
        return list(self.buffers.get(target, ()))

    def recent(self, target: TargetKey) -> List[MetricSample]:
        return _split(self.buffers.get(target, []), self.recent_size, self.baseline_size)[0]

    def baseline(self, target: TargetKey) -> List[MetricSample]:
        return _split(self.buffers.get(target, []), self.recent_size, self.baseline_size)[1]

    def all_samples(self) -> List[MetricSample]:
        merged = [s for buf in self.buffers.values() for s in buf]
        merged.sort(key=lambda s: s.timestamp)
        return merged

    def latest(self, n: int) -> List[MetricSample]:
        merged = self.all_samples()
        return merged[-n:] if n > 0 else []

    def trailing(self, seconds: float, now: float) -> List[MetricSample]:
        cutoff = now - seconds
        return [s for s in self.all_samples() if s.timestamp >= cutoff]


class MetricsWindow:
    """Bounded sample history per target.

    Samples are kept in arrival order; once a target holds ``retention``
    samples the oldest one is evicted on every append. ``recent`` is the
    newest ``recent_size`` samples and ``baseline`` the ``baseline_size``
    samples immediately older than those.
    """

    def __init__(
        self,
        retention: int | None = None,
        recent_size: int | None = None,
        baseline_size: int | None = None,
    ) -> None:
        self.retention = int(retention or settings.sample_retention)
        self.recent_size = int(recent_size or settings.recent_window)
        self.baseline_size = int(baseline_size or settings.baseline_window)
        self._buffers: Dict[TargetKey, Deque[MetricSample]] = {}
        self._lock = threading.Lock()

    def record(self, sample: MetricSample) -> None:
        validate(sample)
        with self._lock:
            buf = self._buffers.get(sample.key)
            if buf is None:
                buf = deque(maxlen=self.retention)
                self._buffers[sample.key] = buf
            buf.append(sample)

    def record_many(self, samples: List[MetricSample]) -> None:
        # a batch holding any malformed sample is rejected whole
        for sample in samples:
            validate(sample)
        for sample in samples:
            self.record(sample)

    def targets(self) -> List[TargetKey]:
        with self._lock:
            return list(self._buffers)

    def samples(self, target: TargetKey) -> List[MetricSample]:
        with self._lock:
            return list(self._buffers.get(target, ()))

    def recent(self, target: TargetKey) -> List[MetricSample]:
        return _split(self.samples(target), self.recent_size, self.baseline_size)[0]

    def baseline(self, target: TargetKey) -> List[MetricSample]:
        return _split(self.samples(target), self.recent_size, self.baseline_size)[1]

    def snapshot(self) -> WindowSnapshot:
        with self._lock:
            buffers = {key: list(buf) for key, buf in self._buffers.items()}
        return WindowSnapshot(buffers=buffers, recent_size=self.recent_size, baseline_size=self.baseline_size)

    def clear(self) -> None:
        with self._lock:
            self._buffers.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(buf) for buf in self._buffers.values())
