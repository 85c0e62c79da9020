"""Audit orchestrator — detection, scoring, and market context in one run."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

from contractscope.analysis.impact import MarketImpactAnalyzer, validate_amounts
from contractscope.analysis.liquidity import LIQUIDITY_VOLUME_RATIO, LiquidityAnalyzer
from contractscope.analysis.listing import score_listing
from contractscope.analysis.models import ListingCriteriaScore, TokenMetrics
from contractscope.analysis.wash_trading import detect_wash_trading
from contractscope.audit.models import (
    TRANSITIONS,
    AuditRecord,
    AuditResult,
    AuditState,
    MarketAssessment,
    ProgressEvent,
    TokenContext,
    content_hash,
)
from contractscope.detector.engine import Detector, make_finding, validate_text
from contractscope.detector.models import Finding
from contractscope.errors import InvalidInputError
from contractscope.market.models import pair_symbol
from contractscope.market.sources import DataSource, ResilientSource
from contractscope.scoring.calculator import rule_score, security_score
from contractscope.scoring.policy import ScoringPolicy, default_policy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuditSink(Protocol):
    """Persistence collaborator for finished audits."""

    async def save(
        self,
        content_hash: str,
        findings: Sequence[Finding],
        security_score: int,
    ) -> AuditRecord:
        ...


class AuditOrchestrator:
    """Runs one audit through idle → detecting → scoring → contextualizing → complete.

    Only malformed input moves an audit to ``error``; provider failures are
    absorbed by the data source's fallback.
    """

    def __init__(
        self,
        source: DataSource | None = None,
        policy: ScoringPolicy | None = None,
        detector: Detector | None = None,
        sink: AuditSink | None = None,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> None:
        self._source = source or ResilientSource()
        self._policy = policy or default_policy()
        self._detector = detector or Detector()
        self._sink = sink
        self._on_progress = on_progress
        self._state = AuditState.IDLE

    @property
    def state(self) -> AuditState:
        return self._state

    @property
    def source(self) -> DataSource:
        return self._source

    async def run(
        self,
        contract_text: str,
        token: TokenContext | None = None,
    ) -> AuditResult:
        """Audit ``contract_text``, optionally in the market context of ``token``."""
        self._state = AuditState.IDLE

        try:
            validate_text(contract_text)
            if token is not None:
                _validate_token(token)
        except InvalidInputError as e:
            self._fail(e)
            raise

        result = AuditResult(
            content_hash=content_hash(contract_text),
            policy_version=self._policy.version,
            token=token,
        )

        self._transition(AuditState.DETECTING)
        for check, verdict in self._detector.iter_checks(contract_text):
            if verdict.found:
                result.findings.append(make_finding(check, verdict))
            self._emit(check.id, "found" if verdict.found else (verdict.details or "clean"))

        self._transition(AuditState.SCORING)
        result.security_score = security_score(result.findings, self._policy)
        result.rule_score = rule_score(contract_text, self._policy, self._detector)
        self._emit(
            "score", f"{result.security_score}/100 (rules {result.rule_score}/100)"
        )

        self._transition(AuditState.CONTEXTUALIZING)
        if token is not None:
            result.market = await self.assess_market(token)

        self._transition(AuditState.COMPLETE)
        result.state = AuditState.COMPLETE
        result.finished_at = time.time()

        if self._sink is not None:
            # Stored records carry the per-rule contract score
            result.record = await self._sink.save(
                result.content_hash, result.findings, result.rule_score
            )
            logger.info("Stored audit record %s", result.record.id)

        self._emit("complete", f"{len(result.findings)} finding(s)")
        return result

    async def assess_market(self, token: TokenContext) -> MarketAssessment:
        """Resolve impact, liquidity, wash trading, and listing concurrently."""
        _validate_token(token)

        impact, liquidity, wash, listing = await asyncio.gather(
            self._component(
                "impact",
                MarketImpactAnalyzer(self._source).analyze(
                    token.symbol, token.exposed_amount, token.total_supply
                ),
            ),
            self._component(
                "liquidity",
                LiquidityAnalyzer(self._source).analyze(
                    token.symbol, token.pool_liquidity
                ),
            ),
            self._component(
                "wash_trading", detect_wash_trading(self._source, token.symbol)
            ),
            self._component("listing", self._listing(token)),
        )
        return MarketAssessment(
            impact=impact, liquidity=liquidity, wash_trading=wash, listing=listing
        )

    async def _listing(self, token: TokenContext) -> ListingCriteriaScore:
        symbol = pair_symbol(token.symbol)
        quote, ticker = await asyncio.gather(
            self._source.get_price(symbol),
            self._source.get_ticker(symbol),
        )
        metrics = TokenMetrics(
            market_cap=quote.price * token.total_supply,
            holders=token.holders,
            volume_24h=ticker.quote_volume,
            liquidity_usd=ticker.quote_volume * LIQUIDITY_VOLUME_RATIO,
        )
        return score_listing(metrics)

    async def _component(self, name: str, work: Awaitable[T]) -> T:
        value = await work
        self._emit(name, "resolved")
        return value

    def _transition(self, new_state: AuditState) -> None:
        if new_state not in TRANSITIONS[self._state]:
            raise RuntimeError(
                f"Illegal audit transition {self._state.value} → {new_state.value}"
            )
        logger.debug("Audit state %s → %s", self._state.value, new_state.value)
        self._state = new_state

    def _fail(self, error: Exception) -> None:
        self._transition(AuditState.ERROR)
        logger.info("Audit rejected: %s", error)
        self._emit("error", str(error))

    def _emit(self, step: str, detail: str = "") -> None:
        if self._on_progress:
            self._on_progress(ProgressEvent(state=self._state, step=step, detail=detail))


def _validate_token(token: TokenContext) -> None:
    pair_symbol(token.symbol)
    validate_amounts(token.exposed_amount, token.total_supply)
    if token.holders < 0:
        raise InvalidInputError("Holder count must not be negative")
