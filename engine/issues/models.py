"""
Issue model: a transient candidate finding, never persisted directly.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from engine.enums import IssueKind, Severity, TargetType


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    target_type: TargetType
    target_name: str
    severity: Severity
    current_value: float
    baseline_value: Optional[float] = None
    deviation_pct: Optional[float] = None
    affected: Tuple[str, ...] = field(default_factory=tuple)
    probability: Optional[float] = None
    timeframe_hours: Optional[float] = None
    title: str = ""
    message: str = ""

    @property
    def is_prediction(self) -> bool:
        return self.probability is not None
