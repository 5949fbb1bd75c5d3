"""
Fingerprint identity tests.
"""

from engine.alerts import fingerprint
from engine.enums import IssueKind, TargetType


def test_fingerprint_is_deterministic():
    a = fingerprint(IssueKind.error_spike, TargetType.agent, "alpha")
    b = fingerprint("error_spike", "agent", "alpha")
    assert a == b
    assert len(a) == 64


def test_fingerprint_distinguishes_each_component():
    base = fingerprint(IssueKind.error_spike, TargetType.agent, "alpha")
    assert base != fingerprint(IssueKind.performance_degradation, TargetType.agent, "alpha")
    assert base != fingerprint(IssueKind.error_spike, TargetType.workflow, "alpha")
    assert base != fingerprint(IssueKind.error_spike, TargetType.agent, "beta")
