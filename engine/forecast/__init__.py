"""
Short-horizon failure trend prediction: compares a target's newest samples with the ones just before them and scores the likelihood that the target is heading for failure.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.forecast.trend import TrendSignal, evaluate_target, forwardable, predict

__all__ = ["TrendSignal", "evaluate_target", "forwardable", "predict"]
