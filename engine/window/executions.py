"""
Bounded log of workflow execution records used by bottleneck classification.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, List, Mapping, Optional

from engine.enums import ExecutionStatus
from engine.errors import ValidationError
from config import settings


@dataclass(frozen=True)
class WorkflowExecution:
    execution_id: str
    workflow_name: str
    status: ExecutionStatus
    started_at: float
    updated_at: float

    @property
    def duration_seconds(self) -> float:
        return self.updated_at - self.started_at

    @classmethod
    def parse(cls, raw: Mapping[str, Any]) -> WorkflowExecution:
        if not isinstance(raw, Mapping):
            raise ValidationError(f"execution must be a mapping, got {type(raw).__name__}")
        try:
            status = ExecutionStatus(raw.get("status"))
        except ValueError as exc:
            raise ValidationError(f"unknown execution status {raw.get('status')!r}") from exc
        started = raw.get("started_at")
        execution = cls(
            execution_id=str(raw.get("execution_id") or ""),
            workflow_name=raw.get("workflow_name"),
            status=status,
            started_at=started,
            updated_at=raw.get("updated_at", started),
        )
        validate(execution)
        return execution


def _timestamp(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


def validate(execution: WorkflowExecution) -> None:
    if not isinstance(execution.workflow_name, str) or not execution.workflow_name.strip():
        raise ValidationError("execution is missing workflow_name")
    started = _timestamp(execution.started_at)
    updated = _timestamp(execution.updated_at)
    if started is None or updated is None:
        raise ValidationError(f"execution of {execution.workflow_name!r} is missing a valid timestamp")
    if updated < started:
        raise ValidationError(f"execution of {execution.workflow_name!r} was updated before it started")


class ExecutionLog:
    def __init__(self, retention: int | None = None) -> None:
        self._items: Deque[WorkflowExecution] = deque(maxlen=int(retention or settings.execution_retention))
        self._lock = threading.Lock()

    def record(self, execution: WorkflowExecution) -> None:
        validate(execution)
        with self._lock:
            # status updates for a known execution replace the earlier record
            if execution.execution_id:
                for i, existing in enumerate(self._items):
                    if existing.execution_id == execution.execution_id:
                        self._items[i] = execution
                        return
            self._items.append(execution)

    def snapshot(self) -> List[WorkflowExecution]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
