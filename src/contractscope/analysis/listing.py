"""Exchange listing readiness — a fixed seven-criterion rubric."""

from __future__ import annotations

import math

from contractscope.analysis.models import (
    ListingCriteriaScore,
    ListingCriterion,
    TokenMetrics,
)
from contractscope.errors import InvalidInputError

MIN_MARKET_CAP = 10_000_000
MIN_HOLDERS = 10_000
MIN_VOLUME_24H = 1_000_000
MIN_LIQUIDITY = 500_000
MIN_TRADING_DAYS = 30
MIN_COMMUNITY = 5_000

MAX_SCORE = 7


def score_listing(metrics: TokenMetrics) -> ListingCriteriaScore:
    """Evaluate the rubric. Order and thresholds never vary."""
    _validate(metrics)

    criteria = (
        ListingCriterion(
            name="Market Cap",
            requirement="$10M+",
            current=f"${metrics.market_cap / 1_000_000:.1f}M",
            passed=metrics.market_cap >= MIN_MARKET_CAP,
        ),
        ListingCriterion(
            name="Holder Count",
            requirement="10,000+",
            current=f"{metrics.holders:,}",
            passed=metrics.holders >= MIN_HOLDERS,
        ),
        ListingCriterion(
            name="24h Volume",
            requirement="$1M+",
            current=f"${metrics.volume_24h / 1_000_000:.1f}M",
            passed=metrics.volume_24h >= MIN_VOLUME_24H,
        ),
        ListingCriterion(
            name="Liquidity",
            requirement="$500K+",
            current=f"${metrics.liquidity_usd / 1_000:.0f}K",
            passed=metrics.liquidity_usd >= MIN_LIQUIDITY,
        ),
        ListingCriterion(
            name="Trading History",
            requirement="30+ days",
            current=f"{metrics.trading_days} days",
            passed=metrics.trading_days >= MIN_TRADING_DAYS,
        ),
        ListingCriterion(
            name="Community Size",
            requirement="5K+ members",
            current=f"{metrics.community_size:,} members",
            passed=metrics.community_size >= MIN_COMMUNITY,
        ),
        ListingCriterion(
            name="Code Audit",
            requirement="Professional audit",
            current="Verified" if metrics.audited else "Not audited",
            passed=metrics.audited,
        ),
    )

    return ListingCriteriaScore(
        score=sum(1 for c in criteria if c.passed),
        max_score=MAX_SCORE,
        criteria=criteria,
    )


def _validate(metrics: TokenMetrics) -> None:
    for name in ("market_cap", "volume_24h", "liquidity_usd"):
        value = getattr(metrics, name)
        if not math.isfinite(value) or value < 0:
            raise InvalidInputError(f"{name} must be a non-negative number")
    for name in ("holders", "trading_days", "community_size"):
        if getattr(metrics, name) < 0:
            raise InvalidInputError(f"{name} must not be negative")
