"""
Threshold arithmetic shared by the anomaly detector, the bottleneck classifier and the trend forecaster, so that rates, averages and ratio checks are computed one way everywhere.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import numpy as np

from engine.window.buffer import MetricSample


def failure_count(samples: Sequence[MetricSample]) -> int:
    return sum(1 for s in samples if s.failed)


def failure_rate(samples: Sequence[MetricSample]) -> float:
    if not samples:
        return 0.0
    return failure_count(samples) / len(samples)


def latencies(samples: Sequence[MetricSample]) -> np.ndarray:
    return np.array([s.latency_ms for s in samples if s.latency_ms is not None], dtype=float)


def mean_latency(samples: Sequence[MetricSample]) -> Optional[float]:
    values = latencies(samples)
    if values.size == 0:
        return None
    return float(values.mean())


def exceeds(current: float, baseline: float, ratio: float, floor: float) -> bool:
    """Strict ratio-and-floor check: ``current > ratio * baseline and current > floor``."""
    return current > ratio * baseline and current > floor


def deviation_pct(current: float, baseline: Optional[float]) -> Optional[float]:
    if baseline is None or baseline == 0:
        return None
    return round((current - baseline) / baseline * 100.0, 2)


def as_pct(rate: float) -> float:
    return round(rate * 100.0, 4)


def unique_names(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(n for n in names if n))
