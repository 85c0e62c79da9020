"""Audit data models — lifecycle state, progress events, results, and records."""

from __future__ import annotations

import enum
import hashlib
import time
from dataclasses import dataclass, field

from contractscope.analysis.models import (
    LiquidityAnalysis,
    ListingCriteriaScore,
    VulnerabilityImpact,
    WashTradingAssessment,
)
from contractscope.detector.models import Finding

# Share of supply assumed exposed when the caller gives no figure
DEFAULT_VULNERABLE_SHARE = 0.01


class AuditState(enum.Enum):
    """Lifecycle state of one audit."""

    IDLE = "idle"
    DETECTING = "detecting"
    SCORING = "scoring"
    CONTEXTUALIZING = "contextualizing"
    COMPLETE = "complete"
    ERROR = "error"


TRANSITIONS: dict[AuditState, frozenset[AuditState]] = {
    AuditState.IDLE: frozenset({AuditState.DETECTING, AuditState.ERROR}),
    AuditState.DETECTING: frozenset({AuditState.SCORING, AuditState.ERROR}),
    AuditState.SCORING: frozenset({AuditState.CONTEXTUALIZING, AuditState.ERROR}),
    AuditState.CONTEXTUALIZING: frozenset({AuditState.COMPLETE, AuditState.ERROR}),
    AuditState.COMPLETE: frozenset(),
    AuditState.ERROR: frozenset(),
}


class RecordStatus(enum.Enum):
    """Verification status of a stored audit record."""

    VERIFIED = "verified"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted after each check and each market component completes."""

    state: AuditState
    step: str
    detail: str = ""
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TokenContext:
    """Market context for an audit."""

    symbol: str
    total_supply: float
    vulnerable_amount: float | None = None
    holders: int = 0
    pool_liquidity: tuple[float, ...] = ()

    @property
    def exposed_amount(self) -> float:
        if self.vulnerable_amount is not None:
            return self.vulnerable_amount
        return self.total_supply * DEFAULT_VULNERABLE_SHARE


@dataclass(frozen=True)
class MarketAssessment:
    """The four market results, resolved together."""

    impact: VulnerabilityImpact
    liquidity: LiquidityAnalysis
    wash_trading: WashTradingAssessment
    listing: ListingCriteriaScore

    def to_dict(self) -> dict:
        return {
            "impact": self.impact.to_dict(),
            "liquidity": self.liquidity.to_dict(),
            "wash_trading": self.wash_trading.to_dict(),
            "listing": self.listing.to_dict(),
        }


@dataclass(frozen=True)
class AuditRecord:
    """Reference returned by the persistence collaborator."""

    id: str
    content_hash: str
    security_score: int
    findings: tuple[Finding, ...]
    status: RecordStatus
    timestamp: float
    block_reference: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content_hash": self.content_hash,
            "security_score": self.security_score,
            "findings": [f.to_dict() for f in self.findings],
            "status": self.status.value,
            "timestamp": self.timestamp,
            "block_reference": self.block_reference,
        }


@dataclass
class AuditResult:
    """Everything one audit produced — the input to report rendering."""

    content_hash: str
    findings: list[Finding] = field(default_factory=list)
    security_score: int = 100
    rule_score: int = 100
    policy_version: str = ""
    token: TokenContext | None = None
    market: MarketAssessment | None = None
    record: AuditRecord | None = None
    state: AuditState = AuditState.IDLE
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None

    def to_dict(self) -> dict:
        return {
            "content_hash": self.content_hash,
            "security_score": self.security_score,
            "rule_score": self.rule_score,
            "policy_version": self.policy_version,
            "findings": [f.to_dict() for f in self.findings],
            "token": self.token.symbol if self.token else None,
            "market": self.market.to_dict() if self.market else None,
            "record_id": self.record.id if self.record else None,
            "state": self.state.value,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


def content_hash(text: str) -> str:
    """SHA-256 of the contract source."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
