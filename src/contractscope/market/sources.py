"""Market data sources — live REST, synthetic fallback, and the resilient wrapper.

``ResilientSource`` is what the analyzers use. It serves cached responses
within the TTL, otherwise tries the live source (with retry and a simple
circuit breaker) and substitutes synthetic data of the same shape on any
transport or payload error. Downstream code therefore never sees a
missing result.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import random
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

import httpx

from contractscope.market.cache import TTLCache
from contractscope.market.models import (
    SYNTHETIC,
    ExchangeInfo,
    Kline,
    PriceQuote,
    Ticker24h,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://api.binance.com"
DEFAULT_TIMEOUT = 10.0
DEFAULT_INTERVAL = "1h"
DEFAULT_LIMIT = 24

_USER_AGENT = "ContractScope/0.1"

_INTERVAL_MS = {
    "1m": 60_000,
    "5m": 300_000,
    "15m": 900_000,
    "30m": 1_800_000,
    "1h": 3_600_000,
    "4h": 14_400_000,
    "1d": 86_400_000,
}

# Reference prices used when the provider is unreachable
FALLBACK_PRICES = {
    "ETHUSDT": 1850.50,
    "BTCUSDT": 43250.75,
    "BNBUSDT": 315.20,
    "ADAUSDT": 0.485,
    "DOTUSDT": 7.25,
}
DEFAULT_FALLBACK_PRICE = 1.00

# Payload and transport failures that trigger the synthetic fallback
_TRANSIENT_ERRORS = (
    httpx.HTTPError,
    asyncio.TimeoutError,
    OSError,
    ValueError,
    KeyError,
    TypeError,
    IndexError,
)


@runtime_checkable
class DataSource(Protocol):
    """Protocol for market data providers."""

    async def get_price(self, symbol: str) -> PriceQuote:
        """Current price for a trading pair."""
        ...

    async def get_ticker(self, symbol: str) -> Ticker24h:
        """24-hour rolling statistics for a trading pair."""
        ...

    async def get_klines(
        self,
        symbol: str,
        interval: str = DEFAULT_INTERVAL,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Kline]:
        """Candlestick series, oldest first."""
        ...

    async def get_exchange_info(self) -> ExchangeInfo:
        """Exchange and symbol metadata."""
        ...


class LiveSource:
    """Reads the provider's public REST API over httpx."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def get_price(self, symbol: str) -> PriceQuote:
        data = await self._get("/api/v3/ticker/price", {"symbol": symbol})
        return PriceQuote.from_api(data)

    async def get_ticker(self, symbol: str) -> Ticker24h:
        data = await self._get("/api/v3/ticker/24hr", {"symbol": symbol})
        return Ticker24h.from_api(data)

    async def get_klines(
        self,
        symbol: str,
        interval: str = DEFAULT_INTERVAL,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Kline]:
        rows = await self._get(
            "/api/v3/klines",
            {"symbol": symbol, "interval": interval, "limit": limit},
        )
        if not isinstance(rows, list):
            raise ValueError("klines payload must be a list")
        return [Kline.from_api(row) for row in rows]

    async def get_exchange_info(self) -> ExchangeInfo:
        data = await self._get("/api/v3/exchangeInfo", {})
        return ExchangeInfo.from_api(data)

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        headers = {"User-Agent": _USER_AGENT}
        if self._client is not None:
            response = await self._client.get(
                url, params=params, headers=headers, timeout=self._timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()


class SyntheticSource:
    """Deterministic, symbol-seeded stand-in data with the live payload shape."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    async def get_price(self, symbol: str) -> PriceQuote:
        return PriceQuote(
            symbol=symbol, price=fallback_price(symbol), source=SYNTHETIC
        )

    async def get_ticker(self, symbol: str) -> Ticker24h:
        base = fallback_price(symbol)
        rng = _seeded_rng(symbol, "ticker")
        change = rng.uniform(-0.05, 0.05) * base
        now_ms = int(self._clock() * 1000)
        return Ticker24h(
            symbol=symbol,
            price_change=round(change, 2),
            price_change_percent=round(change / base * 100, 2),
            last_price=base,
            open_price=round(base - change, 2),
            high_price=round(base * 1.02, 2),
            low_price=round(base * 0.98, 2),
            volume=round(rng.uniform(0, 1_000_000), 2),
            quote_volume=round(rng.uniform(0, 1_000_000_000), 2),
            count=1000,
            open_time=now_ms - 86_400_000,
            close_time=now_ms,
            source=SYNTHETIC,
        )

    async def get_klines(
        self,
        symbol: str,
        interval: str = DEFAULT_INTERVAL,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Kline]:
        base = fallback_price(symbol)
        rng = _seeded_rng(symbol, f"klines:{interval}")
        step = _INTERVAL_MS.get(interval, _INTERVAL_MS[DEFAULT_INTERVAL])
        now_ms = int(self._clock() * 1000)
        volatility = base * 0.02

        klines: list[Kline] = []
        for i in range(limit):
            open_time = now_ms - (limit - i) * step
            open_ = base + (rng.random() - 0.5) * volatility
            close = open_ + (rng.random() - 0.5) * volatility
            high = max(open_, close) + rng.random() * volatility * 0.5
            low = min(open_, close) - rng.random() * volatility * 0.5
            klines.append(
                Kline(
                    open_time=open_time,
                    open=round(open_, 2),
                    high=round(high, 2),
                    low=round(low, 2),
                    close=round(close, 2),
                    volume=round(rng.uniform(0, 10_000), 2),
                    close_time=open_time + step,
                    quote_asset_volume=round(rng.uniform(0, 10_000_000), 2),
                    number_of_trades=rng.randrange(1000),
                    taker_buy_base_volume=round(rng.uniform(0, 5_000), 2),
                    taker_buy_quote_volume=round(rng.uniform(0, 5_000_000), 2),
                    source=SYNTHETIC,
                )
            )
        return klines

    async def get_exchange_info(self) -> ExchangeInfo:
        return ExchangeInfo(source=SYNTHETIC)


class CircuitBreaker:
    """Opens after consecutive failures; allows one trial call after the cool-down.

    While the trial call is in flight every other caller is refused. A trial
    call that never reports back is superseded once another cool-down passes.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        cooldown: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = failure_threshold
        self._cooldown = cooldown
        self._clock = clock
        self._failures = 0
        self._opened_at: float | None = None
        self._trial_started: float | None = None

    @property
    def is_open(self) -> bool:
        return self._opened_at is not None

    def allow(self) -> bool:
        if self._opened_at is None:
            return True
        now = self._clock()
        if now - self._opened_at < self._cooldown:
            return False
        if self._trial_started is not None and now - self._trial_started < self._cooldown:
            return False
        self._trial_started = now
        return True

    def record_success(self) -> None:
        self._failures = 0
        self._opened_at = None
        self._trial_started = None

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self._threshold:
            if self._opened_at is None:
                logger.warning(
                    "Market provider failed %d times — using synthetic data for %.0fs",
                    self._failures,
                    self._cooldown,
                )
            self._opened_at = self._clock()
            self._trial_started = None


class ResilientSource:
    """Cache, then live with retry, then synthetic fallback."""

    def __init__(
        self,
        live: DataSource | None = None,
        fallback: DataSource | None = None,
        cache: TTLCache | None = None,
        breaker: CircuitBreaker | None = None,
        retries: int = 1,
        backoff: float = 0.25,
    ) -> None:
        self._live = live
        self._fallback = fallback or SyntheticSource()
        self._cache = cache if cache is not None else TTLCache()
        self._breaker = breaker or CircuitBreaker()
        self._retries = retries
        self._backoff = backoff

    @property
    def cache(self) -> TTLCache:
        return self._cache

    @property
    def is_offline(self) -> bool:
        return self._live is None

    async def get_price(self, symbol: str) -> PriceQuote:
        return await self._fetch(
            TTLCache.make_key("price", symbol=symbol),
            lambda live: live.get_price(symbol),
            lambda: self._fallback.get_price(symbol),
        )

    async def get_ticker(self, symbol: str) -> Ticker24h:
        return await self._fetch(
            TTLCache.make_key("ticker24hr", symbol=symbol),
            lambda live: live.get_ticker(symbol),
            lambda: self._fallback.get_ticker(symbol),
        )

    async def get_klines(
        self,
        symbol: str,
        interval: str = DEFAULT_INTERVAL,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Kline]:
        return await self._fetch(
            TTLCache.make_key("klines", symbol=symbol, interval=interval, limit=limit),
            lambda live: live.get_klines(symbol, interval, limit),
            lambda: self._fallback.get_klines(symbol, interval, limit),
        )

    async def get_exchange_info(self) -> ExchangeInfo:
        return await self._fetch(
            TTLCache.make_key("exchangeInfo"),
            lambda live: live.get_exchange_info(),
            self._fallback.get_exchange_info,
        )

    async def _fetch(
        self,
        key: str,
        live_call: Callable[[DataSource], Awaitable[T]],
        fallback_call: Callable[[], Awaitable[T]],
    ) -> T:
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        if self._live is not None and self._breaker.allow():
            for attempt in range(self._retries + 1):
                if attempt:
                    await asyncio.sleep(self._backoff * 2 ** (attempt - 1))
                try:
                    value = await live_call(self._live)
                except _TRANSIENT_ERRORS as e:
                    logger.warning(
                        "Fetch %s failed (attempt %d/%d): %s",
                        key,
                        attempt + 1,
                        self._retries + 1,
                        e,
                    )
                    continue
                self._breaker.record_success()
                self._cache.set(key, value)
                return value
            self._breaker.record_failure()

        logger.debug("Serving synthetic data for %s", key)
        return await fallback_call()


def fallback_price(symbol: str) -> float:
    """Documented reference price for a pair, 1.00 when unknown."""
    return FALLBACK_PRICES.get(symbol.upper(), DEFAULT_FALLBACK_PRICE)


def _seeded_rng(symbol: str, salt: str) -> random.Random:
    digest = hashlib.sha256(f"{symbol.upper()}:{salt}".encode()).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))
