"""Security scoring — versioned policy and score calculation."""

from contractscope.scoring.calculator import rule_score, security_score
from contractscope.scoring.policy import ScoringPolicy, default_policy, load_policy

__all__ = [
    "ScoringPolicy",
    "default_policy",
    "load_policy",
    "rule_score",
    "security_score",
]
