"""Analysis value objects — created fresh per analysis, never persisted."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass


class RiskLevel(enum.Enum):
    """Risk classification shared by the market analyzers."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class LiquidityAnalysis:
    """Liquidity concentration for one token at one point in time.

    ``total_liquidity`` is estimated from 24h quote volume, not read from
    pool reserves; ``approximated`` records that.
    """

    total_liquidity: float
    concentration_risk: RiskLevel
    top_pool_percentage: float
    risk_score: int
    recommendations: tuple[str, ...]
    approximated: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data["concentration_risk"] = self.concentration_risk.value
        data["recommendations"] = list(self.recommendations)
        return data


@dataclass(frozen=True)
class WashTradingAssessment:
    """Suspicion of artificial volume from a 24h ticker snapshot."""

    is_wash_trading: bool
    confidence: int
    indicators: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "is_wash_trading": self.is_wash_trading,
            "confidence": self.confidence,
            "indicators": list(self.indicators),
        }


@dataclass(frozen=True)
class VulnerabilityImpact:
    """Dollar exposure of a vulnerability at the current price."""

    token_symbol: str
    current_price: float
    vulnerable_amount: float
    dollar_impact: float
    risk_level: RiskLevel
    market_cap_impact: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data["risk_level"] = self.risk_level.value
        return data


@dataclass(frozen=True)
class TokenMetrics:
    """Inputs to the listing rubric.

    The last three fields have no market data source and default to the
    fixed values the rubric has always assumed.
    """

    market_cap: float
    holders: int
    volume_24h: float
    liquidity_usd: float
    trading_days: int = 45
    community_size: int = 12_000
    audited: bool = True


@dataclass(frozen=True)
class ListingCriterion:
    """One rubric entry with its threshold and the rendered current value."""

    name: str
    requirement: str
    current: str
    passed: bool


@dataclass(frozen=True)
class ListingCriteriaScore:
    """Result of the listing rubric."""

    score: int
    max_score: int
    criteria: tuple[ListingCriterion, ...]

    @property
    def failed(self) -> list[str]:
        return [c.name for c in self.criteria if not c.passed]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "max_score": self.max_score,
            "criteria": [asdict(c) for c in self.criteria],
        }


@dataclass(frozen=True)
class PricePoint:
    """One closed interval of the price history."""

    open_time: int
    close: float
    volume: float


@dataclass(frozen=True)
class PriceHistory:
    """Recent candlestick closes with the range they span.

    An empty ``points`` tuple means no series could be fetched; ``high``,
    ``low`` and ``change_percent`` are then zero.
    """

    symbol: str
    interval: str
    points: tuple[PricePoint, ...]
    high: float
    low: float
    source: str

    @property
    def closes(self) -> list[float]:
        return [p.close for p in self.points]

    @property
    def change_percent(self) -> float:
        if len(self.points) < 2 or self.points[0].close == 0:
            return 0.0
        first, last = self.points[0].close, self.points[-1].close
        return (last - first) / first * 100

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "interval": self.interval,
            "closes": self.closes,
            "points": [asdict(p) for p in self.points],
            "high": self.high,
            "low": self.low,
            "change_percent": self.change_percent,
            "source": self.source,
        }
