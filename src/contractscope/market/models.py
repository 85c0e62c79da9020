"""Market data models parsed from the provider's REST payloads.

Every model carries a ``source`` label, ``"live"`` or ``"synthetic"``.
The label is internal bookkeeping only; consumers must not treat any
figure as live.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from contractscope.errors import InvalidInputError

LIVE = "live"
SYNTHETIC = "synthetic"

QUOTE_ASSET = "USDT"

_SYMBOL_RE = re.compile(r"^[A-Z0-9]{2,20}$")


def pair_symbol(token: str) -> str:
    """Trading pair for ``token`` against the quote asset (``ETH`` → ``ETHUSDT``)."""
    if not isinstance(token, str):
        raise InvalidInputError("Token symbol must be a string")
    symbol = token.strip().upper()
    if not _SYMBOL_RE.match(symbol):
        raise InvalidInputError(f"Invalid token symbol: {token!r}")
    if symbol.endswith(QUOTE_ASSET) and len(symbol) > len(QUOTE_ASSET):
        return symbol
    return symbol + QUOTE_ASSET


@dataclass(frozen=True)
class PriceQuote:
    """Current price for a trading pair."""

    symbol: str
    price: float
    source: str = LIVE

    @classmethod
    def from_api(cls, data: dict) -> PriceQuote:
        return cls(symbol=str(data["symbol"]), price=float(data["price"]))


@dataclass(frozen=True)
class Ticker24h:
    """Rolling 24-hour statistics for a trading pair."""

    symbol: str
    price_change: float
    price_change_percent: float
    last_price: float
    open_price: float
    high_price: float
    low_price: float
    volume: float
    quote_volume: float
    count: int
    open_time: int = 0
    close_time: int = 0
    source: str = LIVE

    @classmethod
    def from_api(cls, data: dict) -> Ticker24h:
        return cls(
            symbol=str(data["symbol"]),
            price_change=float(data["priceChange"]),
            price_change_percent=float(data["priceChangePercent"]),
            last_price=float(data["lastPrice"]),
            open_price=float(data.get("openPrice", 0) or 0),
            high_price=float(data.get("highPrice", 0) or 0),
            low_price=float(data.get("lowPrice", 0) or 0),
            volume=float(data["volume"]),
            quote_volume=float(data["quoteVolume"]),
            count=int(data["count"]),
            open_time=int(data.get("openTime", 0) or 0),
            close_time=int(data.get("closeTime", 0) or 0),
        )


@dataclass(frozen=True)
class Kline:
    """One candlestick."""

    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int
    quote_asset_volume: float
    number_of_trades: int
    taker_buy_base_volume: float
    taker_buy_quote_volume: float
    source: str = LIVE

    @classmethod
    def from_api(cls, row: list) -> Kline:
        return cls(
            open_time=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
            close_time=int(row[6]),
            quote_asset_volume=float(row[7]),
            number_of_trades=int(row[8]),
            taker_buy_base_volume=float(row[9]),
            taker_buy_quote_volume=float(row[10]),
        )


@dataclass(frozen=True)
class ExchangeInfo:
    """Exchange and symbol metadata."""

    symbols: tuple[dict, ...] = ()
    server_time: int = 0
    source: str = LIVE

    @classmethod
    def from_api(cls, data: dict) -> ExchangeInfo:
        symbols = data["symbols"]
        if not isinstance(symbols, list):
            raise ValueError("exchangeInfo 'symbols' must be a list")
        return cls(
            symbols=tuple(symbols),
            server_time=int(data.get("serverTime", 0) or 0),
        )

    def has_symbol(self, symbol: str) -> bool:
        return any(s.get("symbol") == symbol for s in self.symbols)
