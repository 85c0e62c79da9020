"""Named lexical checks for known smart-contract weakness patterns.

Every check is a pure function ``(text) -> CheckResult`` over normalized
contract source. Checks run in registry order; adding a check means
appending a :class:`Check` to :data:`CHECKS`.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from contractscope.detector.models import CheckResult, Severity


@dataclass(frozen=True)
class Check:
    """A registered detection check with its reporting metadata."""

    id: str
    name: str
    severity: Severity
    description: str
    risk_score: float
    predicate: Callable[[str], CheckResult]
    finding_name: str = ""


_LINE_COMMENT = re.compile(r"//[^\n]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


def normalize(text: str) -> str:
    """Strip comments and unify line endings, preserving line numbers."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _BLOCK_COMMENT.sub(lambda m: "\n" * m.group(0).count("\n"), text)
    return _LINE_COMMENT.sub("", text)


def _line_of(text: str, offset: int) -> tuple[int, str]:
    line = text.count("\n", 0, offset) + 1
    start = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    if end == -1:
        end = len(text)
    return line, text[start:end].strip()


def _hit(text: str, offset: int, details: str) -> CheckResult:
    line, excerpt = _line_of(text, offset)
    return CheckResult(found=True, details=details, line=line, excerpt=excerpt)


# ---------------------------------------------------------------------------
# Reentrancy
# ---------------------------------------------------------------------------

_EXTERNAL_CALL = re.compile(r"\.call\s*(?:\{[^}]*\})?\s*\(")
_STATE_ASSIGNMENT = re.compile(
    r"^\s*(?:delete\s+\w|"
    r"[A-Za-z_]\w*(?:\s*\[[^\]]*\])*(?:\.\w+(?:\s*\[[^\]]*\])*)*"
    r"\s*(?:[+\-*/%|&^]|<<|>>)?=(?!=))"
)


def _enclosing_block_end(text: str, start: int) -> int:
    """Offset of the brace closing the block that contains ``start``."""
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            if depth == 0:
                return i
            depth -= 1
    return len(text)


def check_reentrancy(text: str) -> CheckResult:
    """External call followed by a state write in the same block."""
    for match in _EXTERNAL_CALL.finditer(text):
        stmt_end = text.find(";", match.end())
        if stmt_end == -1:
            continue
        block_end = _enclosing_block_end(text, stmt_end + 1)
        tail = text[stmt_end + 1 : block_end]
        for stmt in re.split(r"[;{}]", tail):
            if _STATE_ASSIGNMENT.match(stmt):
                return _hit(
                    text,
                    match.start(),
                    "External calls detected before state changes",
                )
    return CheckResult(found=False)


# ---------------------------------------------------------------------------
# Integer overflow
# ---------------------------------------------------------------------------

_ARITHMETIC = re.compile(r"[\w)\]]\s*[+\-*/%]\s*[\w(]|\+\+|--|[+\-*/]=")
_SAFE_MATH = re.compile(r"\busing\s+SafeMath\b|\bSafeMath\.\w+\s*\(")
_STRING_LITERAL = re.compile(r'"(?:[^"\\\n]|\\.)*"|\'(?:[^\'\\\n]|\\.)*\'')


def _blank_strings(text: str) -> str:
    # Same length, so offsets still point into the original text
    return _STRING_LITERAL.sub(
        lambda m: m.group(0)[0] + " " * (len(m.group(0)) - 2) + m.group(0)[-1],
        text,
    )


def check_overflow(text: str) -> CheckResult:
    """Arithmetic without a safe-math marker."""
    if _SAFE_MATH.search(text):
        return CheckResult(found=False)
    match = _ARITHMETIC.search(_blank_strings(text))
    if match:
        return _hit(text, match.start(), "Arithmetic operations without SafeMath")
    return CheckResult(found=False)


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------

_EXPOSED_FUNCTION = re.compile(
    r"\bfunction\s+\w+\s*\([^)]*\)[^{;]*?\b(?:external|public)\b"
)
_OWNER_GUARD = re.compile(
    r"\bonlyOwner\b|\bonlyRole\s*\("
    r"|require\s*\(\s*msg\.sender\s*==\s*owner\b"
    r"|require\s*\(\s*owner\s*==\s*msg\.sender\b"
    r"|if\s*\(\s*msg\.sender\s*!=\s*owner\s*\)"
)


def check_access_control(text: str) -> CheckResult:
    """Externally reachable functions with no owner guard anywhere."""
    if _OWNER_GUARD.search(text):
        return CheckResult(found=False)
    match = _EXPOSED_FUNCTION.search(text)
    if match:
        return _hit(
            text, match.start(), "Missing access control on privileged functions"
        )
    return CheckResult(found=False)


# ---------------------------------------------------------------------------
# Gas inefficiency
# ---------------------------------------------------------------------------

_INDEXED_IN_LOOP = re.compile(r"\bfor\s*\([^)]*\)\s*\{[^}]*\b\w+\s*\[\s*\w+\s*\]")
_LENGTH_IN_CONDITION = re.compile(
    r"\bfor\s*\([^;)]*;[^;)]*\b\w+(?:\.\w+)*\.length\b"
    r"|\bwhile\s*\([^)]*\.length\b"
)


def check_gas(text: str) -> CheckResult:
    """Storage reads inside loops."""
    match = _LENGTH_IN_CONDITION.search(text) or _INDEXED_IN_LOOP.search(text)
    if match:
        return _hit(text, match.start(), "Potential gas optimization issues in loops")
    return CheckResult(found=False)


# ---------------------------------------------------------------------------
# tx.origin authorization
# ---------------------------------------------------------------------------

_ORIGIN_EQUALITY = re.compile(r"\btx\.origin\s*[!=]=|[!=]=\s*tx\.origin\b")


def check_tx_origin(text: str) -> CheckResult:
    """Authorization through ``tx.origin`` comparison."""
    match = _ORIGIN_EQUALITY.search(text)
    if match:
        return _hit(text, match.start(), "tx.origin used for authorization")
    return CheckResult(found=False)


# ---------------------------------------------------------------------------
# Market cross-reference
# ---------------------------------------------------------------------------


def check_market_reference(text: str) -> CheckResult:
    """Resolved later against market data; never a finding on its own."""
    return CheckResult(
        found=False,
        details="Market cross-reference not yet resolved; awaiting market data",
    )


CHECKS: list[Check] = [
    Check(
        id="reentrancy",
        name="Reentrancy Check",
        finding_name="Reentrancy Vulnerability",
        severity=Severity.HIGH,
        description=(
            "External calls are made before state changes, making the "
            "contract vulnerable to reentrancy attacks."
        ),
        risk_score=9.2,
        predicate=check_reentrancy,
    ),
    Check(
        id="overflow",
        name="Integer Overflow Analysis",
        finding_name="Integer Overflow Risk",
        severity=Severity.MEDIUM,
        description=(
            "Arithmetic operations without SafeMath could lead to integer "
            "overflow or underflow."
        ),
        risk_score=5.4,
        predicate=check_overflow,
    ),
    Check(
        id="access",
        name="Access Control Verification",
        finding_name="Access Control Issue",
        severity=Severity.MEDIUM,
        description=(
            "Public or external functions lack an owner check, allowing "
            "unauthorized callers to modify contract state."
        ),
        risk_score=6.8,
        predicate=check_access_control,
    ),
    Check(
        id="gas",
        name="Gas Optimization",
        finding_name="Gas Inefficiency",
        severity=Severity.LOW,
        description=(
            "Loops read storage arrays or their length on every iteration."
        ),
        risk_score=2.5,
        predicate=check_gas,
    ),
    Check(
        id="origin",
        name="tx.origin Authorization",
        finding_name="Insecure Origin Check",
        severity=Severity.HIGH,
        description=(
            "tx.origin equality checks can be bypassed by phishing contracts."
        ),
        risk_score=8.0,
        predicate=check_tx_origin,
    ),
    Check(
        id="market",
        name="Market Data Cross-Reference",
        finding_name="Market Exposure",
        severity=Severity.LOW,
        description="Cross-reference of the contract against live market data.",
        risk_score=0.0,
        predicate=check_market_reference,
    ),
]


def get_check(check_id: str) -> Check:
    """Look up a registered check by id."""
    for check in CHECKS:
        if check.id == check_id:
            return check
    raise KeyError(check_id)
