"""Dollar-denominated exposure of a vulnerability at the current price."""

from __future__ import annotations

import logging
import math

from contractscope.analysis.models import RiskLevel, VulnerabilityImpact
from contractscope.errors import InvalidInputError
from contractscope.market.models import pair_symbol
from contractscope.market.sources import DataSource

logger = logging.getLogger(__name__)

CRITICAL_IMPACT = 10_000_000
HIGH_IMPACT = 1_000_000
MEDIUM_IMPACT = 100_000


def classify_impact(dollar_impact: float) -> RiskLevel:
    if dollar_impact >= CRITICAL_IMPACT:
        return RiskLevel.CRITICAL
    if dollar_impact >= HIGH_IMPACT:
        return RiskLevel.HIGH
    if dollar_impact >= MEDIUM_IMPACT:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def compute_impact(
    token_symbol: str,
    current_price: float,
    vulnerable_amount: float,
    total_supply: float,
) -> VulnerabilityImpact:
    """Pure impact calculation for a known price."""
    validate_amounts(vulnerable_amount, total_supply)
    dollar_impact = vulnerable_amount * current_price
    market_cap_impact = min(100.0, vulnerable_amount / total_supply * 100)
    return VulnerabilityImpact(
        token_symbol=token_symbol,
        current_price=current_price,
        vulnerable_amount=vulnerable_amount,
        dollar_impact=dollar_impact,
        risk_level=classify_impact(dollar_impact),
        market_cap_impact=market_cap_impact,
    )


def validate_amounts(vulnerable_amount: float, total_supply: float) -> None:
    if not math.isfinite(vulnerable_amount) or vulnerable_amount < 0:
        raise InvalidInputError("Vulnerable amount must be a non-negative number")
    if not math.isfinite(total_supply) or total_supply <= 0:
        raise InvalidInputError("Total supply must be a positive number")


class MarketImpactAnalyzer:
    """Prices a vulnerable token amount through the data source.

    No retries here; the data source owns retry and fallback.
    """

    def __init__(self, source: DataSource) -> None:
        self._source = source

    async def analyze(
        self,
        token_symbol: str,
        vulnerable_amount: float,
        total_supply: float,
    ) -> VulnerabilityImpact:
        symbol = pair_symbol(token_symbol)
        validate_amounts(vulnerable_amount, total_supply)
        quote = await self._source.get_price(symbol)
        logger.debug("Pricing %s at %s (%s)", symbol, quote.price, quote.source)
        return compute_impact(
            token_symbol.strip().upper(),
            quote.price,
            vulnerable_amount,
            total_supply,
        )
