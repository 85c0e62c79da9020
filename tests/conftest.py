"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from contractscope.market.models import SYNTHETIC, ExchangeInfo, PriceQuote, Ticker24h


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def vault_source(fixtures_dir: Path) -> str:
    return (fixtures_dir / "vault.sol").read_text()


@pytest.fixture
def registry_source(fixtures_dir: Path) -> str:
    return (fixtures_dir / "registry.sol").read_text()


@pytest.fixture
def counter_source(fixtures_dir: Path) -> str:
    return (fixtures_dir / "counter.sol").read_text()


@pytest.fixture
def test_scoring_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "test_scoring.yaml"


@pytest.fixture
def simple_scoring_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "simple_scoring.yaml"


def _ticker(
    symbol: str = "ETHUSDT",
    volume: float = 50_000.0,
    quote_volume: float = 20_000_000.0,
    price_change_percent: float = 2.5,
    last_price: float = 1850.5,
    count: int = 10_000,
    source: str = "live",
) -> Ticker24h:
    return Ticker24h(
        symbol=symbol,
        price_change=last_price * price_change_percent / 100,
        price_change_percent=price_change_percent,
        last_price=last_price,
        open_price=last_price,
        high_price=last_price,
        low_price=last_price,
        volume=volume,
        quote_volume=quote_volume,
        count=count,
        source=source,
    )


class StaticSource:
    """In-memory data source returning fixed figures and counting calls."""

    def __init__(self, price: float = 1850.50, ticker: Ticker24h | None = None) -> None:
        self.price = price
        self.ticker = ticker or _ticker()
        self.calls: list[tuple[str, str]] = []

    async def get_price(self, symbol):
        self.calls.append(("price", symbol))
        return PriceQuote(symbol=symbol, price=self.price)

    async def get_ticker(self, symbol):
        self.calls.append(("ticker", symbol))
        return self.ticker

    async def get_klines(self, symbol, interval="1h", limit=24):
        self.calls.append(("klines", symbol))
        return []

    async def get_exchange_info(self):
        return ExchangeInfo(source=SYNTHETIC)


@pytest.fixture
def static_source() -> StaticSource:
    return StaticSource()


@pytest.fixture
def make_ticker():
    return _ticker
