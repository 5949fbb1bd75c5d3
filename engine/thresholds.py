"""
Process-wide threshold configuration. Every update produces a new immutable, versioned snapshot that replaces the previous one atomically, so a detection pass holding a snapshot never observes a partial update.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping

from engine.errors import ValidationError
from config import DEFAULT_THRESHOLDS

log = logging.getLogger(__name__)

_BOUNDS: Dict[str, tuple[float, float]] = {
    "response_time_seconds": (0.0, 3600.0),
    "success_rate_pct": (0.0, 100.0),
    "error_rate_pct": (0.0, 100.0),
    "handoff_time_seconds": (0.0, 3600.0),
}


@dataclass(frozen=True)
class ThresholdConfig:
    response_time_seconds: float = DEFAULT_THRESHOLDS["response_time_seconds"]
    success_rate_pct: float = DEFAULT_THRESHOLDS["success_rate_pct"]
    error_rate_pct: float = DEFAULT_THRESHOLDS["error_rate_pct"]
    handoff_time_seconds: float = DEFAULT_THRESHOLDS["handoff_time_seconds"]
    version: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number, got {value!r}") from exc
    low, high = _BOUNDS[name]
    if not math.isfinite(numeric) or numeric < low or numeric > high:
        raise ValidationError(f"{name} must be within [{low}, {high}], got {numeric}")
    if name.endswith("_seconds") and numeric == 0:
        raise ValidationError(f"{name} must be positive")
    return numeric


class ThresholdRegistry:
    def __init__(self, initial: ThresholdConfig | None = None) -> None:
        self._current = initial or ThresholdConfig()
        self._lock = threading.Lock()

    def get(self) -> ThresholdConfig:
        return self._current

    def set(self, values: Mapping[str, Any]) -> ThresholdConfig:
        unknown = set(values) - set(_BOUNDS)
        if unknown:
            raise ValidationError(f"unknown threshold(s): {', '.join(sorted(unknown))}")
        coerced = {name: _coerce(name, value) for name, value in values.items() if value is not None}
        with self._lock:
            updated = replace(self._current, **coerced, version=self._current.version + 1)
            self._current = updated
        log.info("Thresholds updated to version %d: %s", updated.version, coerced)
        return updated

    def load(self, stored: Mapping[str, Any]) -> ThresholdConfig:
        """Adopt a previously persisted snapshot, keeping its version."""
        fields = {name: _coerce(name, stored[name]) for name in _BOUNDS if stored.get(name) is not None}
        try:
            version = max(0, int(stored.get("version", 0)))
        except (TypeError, ValueError):
            version = 0
        with self._lock:
            self._current = replace(ThresholdConfig(), **fields, version=version)
        return self._current

    def reset(self) -> ThresholdConfig:
        with self._lock:
            self._current = ThresholdConfig(version=self._current.version + 1)
        return self._current


_registry = ThresholdRegistry()


def get_thresholds() -> ThresholdRegistry:
    return _registry
