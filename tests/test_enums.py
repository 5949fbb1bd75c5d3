"""
Test cases for enums used in the detection engine, validating severity ordering and alert status groups.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.enums import AlertStatus, IssueKind, Severity


def test_severity_weight_ordering():
    assert Severity.low.weight() < Severity.medium.weight() < Severity.high.weight() < Severity.critical.weight()


@pytest.mark.parametrize("probability,expected", [(61, Severity.medium), (80, Severity.medium), (80.1, Severity.high)])
def test_severity_from_probability(probability, expected):
    assert Severity.from_probability(probability) == expected


def test_live_statuses():
    assert AlertStatus.live() == (AlertStatus.active, AlertStatus.acknowledged)
    assert AlertStatus.resolved not in AlertStatus.live()


def test_issue_kinds_are_stable_strings():
    assert IssueKind("error_spike") is IssueKind.error_spike
    assert len(IssueKind) == 12
