"""Tests for the market-risk analyzers."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from contractscope.analysis.history import UNAVAILABLE as NO_HISTORY
from contractscope.analysis.history import price_history, summarize_klines
from contractscope.analysis.impact import (
    MarketImpactAnalyzer,
    classify_impact,
    compute_impact,
)
from contractscope.analysis.liquidity import (
    ESTIMATE_MAX,
    ESTIMATE_MIN,
    UNAVAILABLE,
    LiquidityAnalyzer,
    build_analysis,
    classify_concentration,
    estimate_top_pool_share,
    top_pool_share,
)
from contractscope.analysis.listing import score_listing
from contractscope.analysis.models import RiskLevel, TokenMetrics
from contractscope.analysis.wash_trading import (
    FAILED,
    assess_wash_trading,
    detect_wash_trading,
    is_round_price,
)
from contractscope.errors import InvalidInputError
from contractscope.market.models import SYNTHETIC, Kline
from contractscope.market.sources import SyntheticSource


def run_async(coro):
    """Helper to run async functions in sync tests."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


class FailingSource:
    async def get_price(self, symbol):
        raise httpx.ConnectError("unreachable")

    async def get_ticker(self, symbol):
        raise httpx.ConnectError("unreachable")

    async def get_klines(self, symbol, interval="1h", limit=24):
        raise httpx.ConnectError("unreachable")


class TestLiquidity:
    @pytest.mark.parametrize(
        ("share", "risk"),
        [
            (70.0, RiskLevel.MEDIUM),
            (70.01, RiskLevel.HIGH),
            (50.0, RiskLevel.LOW),
            (50.01, RiskLevel.MEDIUM),
            (0.0, RiskLevel.LOW),
        ],
    )
    def test_classification_boundaries(self, share, risk):
        assert classify_concentration(share) == risk

    def test_high_risk_analysis(self):
        analysis = build_analysis(1_000_000, 85.0)
        assert analysis.concentration_risk == RiskLevel.HIGH
        assert analysis.risk_score == 3
        assert "Monitor for potential rug pull risks" in analysis.recommendations

    def test_low_risk_analysis(self):
        analysis = build_analysis(1_000_000, 30.0)
        assert analysis.risk_score == 10
        assert analysis.recommendations[0] == "Healthy liquidity distribution"

    def test_top_pool_share(self):
        assert top_pool_share([600.0, 300.0, 100.0]) == pytest.approx(60.0)
        assert top_pool_share([]) is None
        assert top_pool_share([0.0, -5.0]) is None

    def test_estimate_is_bounded_and_stable(self):
        share = estimate_top_pool_share("ETHUSDT")
        assert ESTIMATE_MIN <= share <= ESTIMATE_MAX
        assert share == estimate_top_pool_share("ETHUSDT")

    def test_analyze_uses_quote_volume(self, static_source):
        analysis = run_async(
            LiquidityAnalyzer(static_source).analyze("ETH", pool_liquidity=[9.0, 1.0])
        )
        assert analysis.total_liquidity == pytest.approx(2_000_000)
        assert analysis.top_pool_percentage == pytest.approx(90.0)
        assert analysis.concentration_risk == RiskLevel.HIGH
        assert analysis.approximated
        assert static_source.calls == [("ticker", "ETHUSDT")]

    def test_provider_failure_is_conservative(self):
        analysis = run_async(LiquidityAnalyzer(FailingSource()).analyze("ETH"))
        assert analysis == UNAVAILABLE
        assert analysis.concentration_risk == RiskLevel.HIGH
        assert analysis.risk_score == 1

    def test_invalid_symbol_raises(self, static_source):
        with pytest.raises(InvalidInputError):
            run_async(LiquidityAnalyzer(static_source).analyze("not a symbol"))


class TestWashTrading:
    def test_all_indicators(self, make_ticker):
        ticker = make_ticker(
            volume=5_000_000, price_change_percent=0.5, count=100, last_price=2.0
        )
        result = assess_wash_trading(ticker)
        assert result.is_wash_trading
        assert result.confidence == 70
        assert result.indicators == (
            "High volume with minimal price impact",
            "Large average trade sizes",
            "Price clustering at round numbers",
        )

    def test_at_threshold_is_not_wash_trading(self, make_ticker):
        ticker = make_ticker(
            volume=2_000_000, price_change_percent=0.2, count=1_000_000, last_price=3.0
        )
        result = assess_wash_trading(ticker)
        assert result.confidence == 45
        assert not result.is_wash_trading

    def test_volume_and_trade_size(self, make_ticker):
        ticker = make_ticker(
            volume=5_000_000, price_change_percent=-0.3, count=10, last_price=1.2345
        )
        result = assess_wash_trading(ticker)
        assert result.confidence == 55
        assert result.is_wash_trading

    def test_healthy_ticker(self, make_ticker):
        result = assess_wash_trading(make_ticker())
        assert not result.is_wash_trading
        assert result.confidence == 0
        assert result.indicators == ()

    def test_missing_volume_not_evaluated(self, make_ticker):
        ticker = make_ticker(volume=0, count=0, last_price=1850.5)
        assert assess_wash_trading(ticker).confidence == 0

    def test_missing_ticker(self):
        assert assess_wash_trading(None) == FAILED
        assert FAILED.indicators == ("Analysis failed",)

    def test_round_price(self):
        assert is_round_price(43000.0)
        assert not is_round_price(1850.5)

    def test_provider_failure(self):
        assert run_async(detect_wash_trading(FailingSource(), "ETH")) == FAILED


class TestListing:
    def test_only_market_cap_fails(self):
        metrics = TokenMetrics(
            market_cap=5_000_000,
            holders=15_000,
            volume_24h=2_000_000,
            liquidity_usd=600_000,
        )
        score = score_listing(metrics)
        assert score.failed == ["Market Cap"]
        assert score.score == 6
        assert score.max_score == 7

    def test_criteria_order_and_rendering(self):
        metrics = TokenMetrics(
            market_cap=25_000_000,
            holders=15_000,
            volume_24h=2_000_000,
            liquidity_usd=600_000,
            audited=False,
        )
        criteria = score_listing(metrics).criteria
        assert [c.name for c in criteria] == [
            "Market Cap",
            "Holder Count",
            "24h Volume",
            "Liquidity",
            "Trading History",
            "Community Size",
            "Code Audit",
        ]
        assert criteria[0].current == "$25.0M"
        assert criteria[1].current == "15,000"
        assert criteria[3].current == "$600K"
        assert criteria[5].current == "12,000 members"
        assert criteria[6].current == "Not audited"
        assert not criteria[6].passed

    def test_thresholds_inclusive(self):
        metrics = TokenMetrics(
            market_cap=10_000_000,
            holders=10_000,
            volume_24h=1_000_000,
            liquidity_usd=500_000,
            trading_days=30,
            community_size=5_000,
        )
        assert score_listing(metrics).score == 7

    def test_negative_input_rejected(self):
        with pytest.raises(InvalidInputError):
            score_listing(
                TokenMetrics(market_cap=-1, holders=0, volume_24h=0, liquidity_usd=0)
            )


class TestImpact:
    def test_critical_scenario(self):
        impact = compute_impact("ETH", 1850.50, 1_200_000, 120_000_000)
        assert impact.dollar_impact == pytest.approx(2_220_600_000)
        assert impact.risk_level == RiskLevel.CRITICAL
        assert impact.market_cap_impact == pytest.approx(1.0)

    @pytest.mark.parametrize(
        ("dollars", "level"),
        [
            (10_000_000, RiskLevel.CRITICAL),
            (9_999_999, RiskLevel.HIGH),
            (1_000_000, RiskLevel.HIGH),
            (100_000, RiskLevel.MEDIUM),
            (99_999, RiskLevel.LOW),
        ],
    )
    def test_thresholds(self, dollars, level):
        assert classify_impact(dollars) == level

    def test_market_cap_impact_capped(self):
        impact = compute_impact("ETH", 1.0, 200, 100)
        assert impact.market_cap_impact == 100.0

    def test_zero_supply_rejected(self):
        with pytest.raises(InvalidInputError):
            compute_impact("ETH", 1.0, 10, 0)

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidInputError):
            compute_impact("ETH", 1.0, -1, 100)

    def test_analyzer_prices_through_source(self, static_source):
        impact = run_async(
            MarketImpactAnalyzer(static_source).analyze("eth", 1_200_000, 120_000_000)
        )
        assert impact.token_symbol == "ETH"
        assert impact.current_price == 1850.50
        assert impact.risk_level == RiskLevel.CRITICAL
        assert static_source.calls == [("price", "ETHUSDT")]


def _kline(open_time: int, high: float, low: float, close: float) -> Kline:
    return Kline(
        open_time=open_time,
        open=close,
        high=high,
        low=low,
        close=close,
        volume=10.0,
        close_time=open_time + 3_600_000,
        quote_asset_volume=0.0,
        number_of_trades=1,
        taker_buy_base_volume=0.0,
        taker_buy_quote_volume=0.0,
    )


class TestPriceHistory:
    def test_synthetic_day_of_hourly_candles(self):
        source = SyntheticSource(clock=lambda: 1_700_000_000.0)
        history = run_async(price_history(source, "ETH"))

        assert history.symbol == "ETHUSDT"
        assert history.interval == "1h"
        assert len(history.closes) == 24
        assert history.source == SYNTHETIC
        assert history.low <= min(history.closes)
        assert history.high >= max(history.closes)
        times = [p.open_time for p in history.points]
        assert times == sorted(times)

    def test_range_spans_every_candle(self):
        klines = [
            _kline(0, high=105.0, low=99.0, close=100.0),
            _kline(1, high=112.0, low=101.0, close=110.0),
            _kline(2, high=109.0, low=95.0, close=104.0),
        ]
        history = summarize_klines("ETHUSDT", "1h", klines)
        assert history.closes == [100.0, 110.0, 104.0]
        assert history.high == 112.0
        assert history.low == 95.0
        assert history.change_percent == pytest.approx(4.0)

    def test_to_dict(self):
        history = summarize_klines("ETHUSDT", "1h", [_kline(0, 2.0, 1.0, 1.5)])
        data = history.to_dict()
        assert data["closes"] == [1.5]
        assert data["points"][0]["open_time"] == 0
        assert data["change_percent"] == 0.0

    def test_provider_failure_is_empty(self):
        history = run_async(price_history(FailingSource(), "ETH"))
        assert history.points == ()
        assert history.source == NO_HISTORY
        assert history.high == history.low == 0.0

    def test_invalid_symbol_raises(self, static_source):
        with pytest.raises(InvalidInputError):
            run_async(price_history(static_source, "not a symbol"))
