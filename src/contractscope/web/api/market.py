"""REST API for market-risk snapshots."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from contractscope.analysis.history import price_history
from contractscope.analysis.liquidity import LiquidityAnalyzer
from contractscope.analysis.wash_trading import detect_wash_trading
from contractscope.audit.models import TokenContext
from contractscope.audit.orchestrator import AuditOrchestrator
from contractscope.errors import InvalidInputError
from contractscope.market.models import pair_symbol

router = APIRouter(tags=["market"])


@router.get("/market/{symbol}")
async def get_market(
    symbol: str,
    request: Request,
    supply: float | None = None,
    holders: int = 0,
):
    """Price, 24h history, liquidity and wash trading; listing and impact need ``supply``."""
    source = request.app.state.source
    try:
        pair = pair_symbol(symbol)
        quote, history = await asyncio.gather(
            source.get_price(pair), price_history(source, symbol)
        )
        if supply is None:
            liquidity, wash = await asyncio.gather(
                LiquidityAnalyzer(source).analyze(symbol),
                detect_wash_trading(source, symbol),
            )
            listing = impact = None
        else:
            token = TokenContext(symbol=symbol, total_supply=supply, holders=holders)
            assessment = await AuditOrchestrator(source=source).assess_market(token)
            liquidity, wash = assessment.liquidity, assessment.wash_trading
            listing, impact = assessment.listing, assessment.impact
    except InvalidInputError as e:
        return JSONResponse(status_code=422, content={"detail": str(e)})

    return {
        "symbol": pair,
        "price": quote.price,
        "source": quote.source,
        "history": history.to_dict(),
        "liquidity": liquidity.to_dict(),
        "wash_trading": wash.to_dict(),
        "listing": listing.to_dict() if listing else None,
        "impact": impact.to_dict() if impact else None,
    }
