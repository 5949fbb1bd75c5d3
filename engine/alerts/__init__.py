"""
Alert identity and records. The lifecycle lives in engine.alerts.manager.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.alerts.fingerprint import fingerprint
from engine.alerts.models import Alert, AlertFilter

__all__ = ["Alert", "AlertFilter", "fingerprint"]
