"""
Candidate findings produced by the detectors and the shared threshold arithmetic they are all built on.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.issues.models import Issue
from engine.issues import rules

__all__ = ["Issue", "rules"]
