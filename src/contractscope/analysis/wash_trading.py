"""Wash-trading heuristics over a 24-hour ticker snapshot."""

from __future__ import annotations

import logging
import math

import httpx

from contractscope.analysis.models import WashTradingAssessment
from contractscope.market.models import Ticker24h, pair_symbol
from contractscope.market.sources import DataSource

logger = logging.getLogger(__name__)

HIGH_VOLUME = 1_000_000
FLAT_PRICE_CHANGE = 1.0
LARGE_AVG_TRADE = 10_000
SUSPICION_THRESHOLD = 50

HIGH_VOLUME_WEIGHT = 30
LARGE_TRADES_WEIGHT = 25
ROUND_PRICE_WEIGHT = 15

FAILED = WashTradingAssessment(
    is_wash_trading=False,
    confidence=0,
    indicators=("Analysis failed",),
)


def assess_wash_trading(ticker: Ticker24h | None) -> WashTradingAssessment:
    """Sum the weights of triggered indicators, in evaluation order.

    An indicator whose inputs are missing (zero or non-finite) is not
    evaluated.
    """
    if ticker is None:
        return FAILED

    indicators: list[str] = []
    suspicion = 0

    volume = ticker.volume
    change = ticker.price_change_percent
    if _present(volume) and math.isfinite(change):
        if volume > HIGH_VOLUME and abs(change) < FLAT_PRICE_CHANGE:
            indicators.append("High volume with minimal price impact")
            suspicion += HIGH_VOLUME_WEIGHT

    if _present(volume) and ticker.count > 0:
        if volume / ticker.count > LARGE_AVG_TRADE:
            indicators.append("Large average trade sizes")
            suspicion += LARGE_TRADES_WEIGHT

    if _present(ticker.last_price) and is_round_price(ticker.last_price):
        indicators.append("Price clustering at round numbers")
        suspicion += ROUND_PRICE_WEIGHT

    return WashTradingAssessment(
        is_wash_trading=suspicion > SUSPICION_THRESHOLD,
        confidence=min(suspicion, 100),
        indicators=tuple(indicators),
    )


def is_round_price(price: float) -> bool:
    """True when the price sits on a whole-number boundary."""
    return float(price).is_integer()


async def detect_wash_trading(
    source: DataSource,
    token_symbol: str,
) -> WashTradingAssessment:
    """Fetch the ticker for ``token_symbol`` and assess it."""
    symbol = pair_symbol(token_symbol)
    try:
        ticker = await source.get_ticker(symbol)
    except (httpx.HTTPError, OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("Ticker for %s unavailable: %s", symbol, e)
        return FAILED
    return assess_wash_trading(ticker)


def _present(value: float) -> bool:
    return math.isfinite(value) and value > 0
