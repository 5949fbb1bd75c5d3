"""
Deterministic alert identity used as the deduplication key.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
from typing import Union

from engine.enums import IssueKind, TargetType


def _value(v: Union[str, IssueKind, TargetType]) -> str:
    return v.value if isinstance(v, (IssueKind, TargetType)) else str(v)


def fingerprint(alert_type: Union[str, IssueKind], target_type: Union[str, TargetType], target_name: str) -> str:
    canonical = "|".join((_value(alert_type), _value(target_type), target_name.strip()))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
