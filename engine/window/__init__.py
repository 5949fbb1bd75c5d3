"""
Bounded per-target sample buffers and workflow execution log, exposing the recent and baseline slices that every detector compares.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.window.buffer import MetricSample, MetricsWindow, TargetKey, WindowSnapshot
from engine.window.executions import ExecutionLog, WorkflowExecution

__all__ = ["MetricSample", "MetricsWindow", "TargetKey", "WindowSnapshot", "ExecutionLog", "WorkflowExecution"]
