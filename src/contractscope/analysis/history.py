"""Price history — a short candlestick series summarized for display."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from contractscope.analysis.models import PriceHistory, PricePoint
from contractscope.market.models import Kline, pair_symbol
from contractscope.market.sources import DEFAULT_INTERVAL, DEFAULT_LIMIT, DataSource

logger = logging.getLogger(__name__)

UNAVAILABLE = "unavailable"


def summarize_klines(symbol: str, interval: str, klines: Sequence[Kline]) -> PriceHistory:
    """Closes oldest first, plus the high/low range across every candle."""
    if not klines:
        return PriceHistory(
            symbol=symbol,
            interval=interval,
            points=(),
            high=0.0,
            low=0.0,
            source=UNAVAILABLE,
        )
    return PriceHistory(
        symbol=symbol,
        interval=interval,
        points=tuple(
            PricePoint(open_time=k.open_time, close=k.close, volume=k.volume) for k in klines
        ),
        high=max(k.high for k in klines),
        low=min(k.low for k in klines),
        source=klines[0].source,
    )


async def price_history(
    source: DataSource,
    token_symbol: str,
    interval: str = DEFAULT_INTERVAL,
    limit: int = DEFAULT_LIMIT,
) -> PriceHistory:
    """Fetch the last ``limit`` candles for ``token_symbol`` (24 × 1h by default)."""
    symbol = pair_symbol(token_symbol)
    try:
        klines = await source.get_klines(symbol, interval, limit)
    except (httpx.HTTPError, OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("Price history for %s unavailable: %s", symbol, e)
        klines = []
    return summarize_klines(symbol, interval, klines)
