"""Security score calculation — deterministic deductions from 100."""

from __future__ import annotations

import re
from collections.abc import Iterable

from contractscope.detector.checks import normalize
from contractscope.detector.engine import Detector
from contractscope.detector.models import Finding
from contractscope.scoring.policy import ScoringPolicy, default_policy

MIN_SCORE = 0
MAX_SCORE = 100


def security_score(
    findings: Iterable[Finding],
    policy: ScoringPolicy | None = None,
) -> int:
    """Score a finding set by severity. No findings scores 100."""
    policy = policy or default_policy()
    deductions = sum(policy.severity_penalty(f.severity) for f in findings)
    return _clamp(MAX_SCORE - deductions)


def rule_score(
    text: str,
    policy: ScoringPolicy | None = None,
    detector: Detector | None = None,
) -> int:
    """Fast single-contract score, one discrete penalty per triggered rule.

    A rule is charged once regardless of how often its pattern occurs, and
    is waived when the policy's suppression marker appears as a word in the
    code itself. Markers inside comments do not count.
    """
    policy = policy or default_policy()
    detector = detector or Detector()

    triggered = {f.check_id for f in detector.detect(text)}
    code = normalize(text)
    deductions = 0
    for check_id in sorted(triggered):
        marker = policy.suppressed_by.get(check_id)
        if marker and _present(marker, code):
            continue
        deductions += policy.rule_penalty(check_id)
    return _clamp(MAX_SCORE - deductions)


def _present(marker: str, code: str) -> bool:
    return re.search(rf"\b{re.escape(marker)}\b", code) is not None


def _clamp(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))
