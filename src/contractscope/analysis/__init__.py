"""Market-risk analyzers — liquidity, wash trading, listing, impact."""

from contractscope.analysis.history import price_history, summarize_klines
from contractscope.analysis.impact import MarketImpactAnalyzer, compute_impact
from contractscope.analysis.liquidity import LiquidityAnalyzer
from contractscope.analysis.listing import score_listing
from contractscope.analysis.models import (
    LiquidityAnalysis,
    ListingCriteriaScore,
    PriceHistory,
    PricePoint,
    RiskLevel,
    TokenMetrics,
    VulnerabilityImpact,
    WashTradingAssessment,
)
from contractscope.analysis.wash_trading import assess_wash_trading, detect_wash_trading

__all__ = [
    "LiquidityAnalysis",
    "LiquidityAnalyzer",
    "ListingCriteriaScore",
    "MarketImpactAnalyzer",
    "PriceHistory",
    "PricePoint",
    "RiskLevel",
    "TokenMetrics",
    "VulnerabilityImpact",
    "WashTradingAssessment",
    "assess_wash_trading",
    "compute_impact",
    "detect_wash_trading",
    "price_history",
    "score_listing",
    "summarize_klines",
]
