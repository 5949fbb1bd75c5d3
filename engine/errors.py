"""
Domain exceptions raised by the detection engine and alert lifecycle.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""


class FleetPulseError(Exception):
    pass


class ValidationError(FleetPulseError):
    pass


class AlertNotFound(FleetPulseError):
    pass


class InvalidTransition(FleetPulseError):
    pass


class PersistenceError(FleetPulseError):
    pass
