"""CLI command: contractscope market <symbol> — market-risk snapshot for a token."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console
from rich.table import Table

from contractscope.analysis.history import price_history
from contractscope.analysis.liquidity import LiquidityAnalyzer
from contractscope.analysis.models import (
    LiquidityAnalysis,
    ListingCriteriaScore,
    PriceHistory,
    RiskLevel,
    VulnerabilityImpact,
    WashTradingAssessment,
)
from contractscope.analysis.wash_trading import detect_wash_trading
from contractscope.audit.models import MarketAssessment, TokenContext
from contractscope.audit.orchestrator import AuditOrchestrator
from contractscope.config import ContractScopeConfig
from contractscope.errors import InvalidInputError
from contractscope.market.models import SYNTHETIC, pair_symbol
from contractscope.market.sources import DataSource

console = Console(stderr=True)

RISK_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}

_SPARK_BARS = "▁▂▃▄▅▆▇█"


@click.command()
@click.argument("symbol")
@click.option("--supply", type=float, default=None, help="Total token supply.")
@click.option("--holders", type=int, default=0, help="Known holder count.")
@click.option("--offline", is_flag=True, help="Use synthetic market data only.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON to stdout.")
def market(
    symbol: str,
    supply: float | None,
    holders: int,
    offline: bool,
    as_json: bool,
) -> None:
    """Show liquidity, wash-trading, and listing analysis for SYMBOL."""
    config = ContractScopeConfig.load()
    if offline:
        config.offline = True
    source = config.build_source()

    try:
        pair = pair_symbol(symbol)
        if supply is None:
            report = asyncio.run(_snapshot(source, symbol, pair))
        else:
            token = TokenContext(symbol=symbol, total_supply=supply, holders=holders)
            report = asyncio.run(_assessment(source, token, pair))
    except InvalidInputError as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        raise SystemExit(2)

    if as_json:
        click.echo(json.dumps(_jsonable(report), indent=2))
        return

    console.print(f"[bold]ContractScope[/bold] market snapshot for [cyan]{pair}[/cyan]\n")
    if "market" in report:
        print_assessment(report["market"])
    else:
        quote = report["price"]
        note = " [dim](synthetic)[/dim]" if quote.source == SYNTHETIC else ""
        console.print(f"Price: [bold]${quote.price:,.4f}[/bold]{note}\n")
        print_liquidity(report["liquidity"])
        print_wash_trading(report["wash_trading"])
        console.print("[dim]Pass --supply to score listing criteria.[/dim]\n")
    print_history(report["history"])


async def _snapshot(source: DataSource, symbol: str, pair: str) -> dict:
    quote, liquidity, wash, history = await asyncio.gather(
        source.get_price(pair),
        LiquidityAnalyzer(source).analyze(symbol),
        detect_wash_trading(source, symbol),
        price_history(source, symbol),
    )
    return {
        "symbol": pair,
        "price": quote,
        "liquidity": liquidity,
        "wash_trading": wash,
        "history": history,
    }


async def _assessment(source: DataSource, token: TokenContext, pair: str) -> dict:
    assessment, history = await asyncio.gather(
        AuditOrchestrator(source=source).assess_market(token),
        price_history(source, token.symbol),
    )
    return {"symbol": pair, "market": assessment, "history": history}


def _jsonable(report: dict) -> dict:
    data = {}
    for key, value in report.items():
        data[key] = value.to_dict() if hasattr(value, "to_dict") else value
    if "price" in report:
        quote = report["price"]
        data["price"] = {"price": quote.price, "source": quote.source}
    return data


def print_assessment(assessment: MarketAssessment) -> None:
    print_impact(assessment.impact)
    print_liquidity(assessment.liquidity)
    print_wash_trading(assessment.wash_trading)
    print_listing(assessment.listing)


def print_impact(impact: VulnerabilityImpact) -> None:
    color = RISK_COLORS[impact.risk_level]
    console.print("[bold]Market impact[/bold]")
    console.print(f"  Price:            ${impact.current_price:,.4f}")
    console.print(f"  Vulnerable:       {impact.vulnerable_amount:,.2f} {impact.token_symbol}")
    console.print(f"  Dollar exposure:  ${impact.dollar_impact:,.2f}")
    console.print(f"  Share of supply:  {impact.market_cap_impact:.2f}%")
    console.print(f"  Risk:             [{color}]{impact.risk_level.value}[/{color}]\n")


def print_liquidity(analysis: LiquidityAnalysis) -> None:
    color = RISK_COLORS[analysis.concentration_risk]
    suffix = " (estimated)" if analysis.approximated else ""
    console.print("[bold]Liquidity[/bold]")
    console.print(f"  Total liquidity:  ${analysis.total_liquidity:,.2f}{suffix}")
    console.print(f"  Top pool share:   {analysis.top_pool_percentage:.1f}%")
    console.print(
        f"  Concentration:    [{color}]{analysis.concentration_risk.value}[/{color}] "
        f"(score {analysis.risk_score}/10)"
    )
    for rec in analysis.recommendations:
        console.print(f"    • {rec}")
    console.print()


def print_wash_trading(assessment: WashTradingAssessment) -> None:
    verdict = (
        "[red]suspected[/red]" if assessment.is_wash_trading else "[green]not detected[/green]"
    )
    console.print("[bold]Wash trading[/bold]")
    console.print(f"  Verdict:          {verdict} (confidence {assessment.confidence}%)")
    for indicator in assessment.indicators:
        console.print(f"    • {indicator}")
    console.print()


def print_listing(score: ListingCriteriaScore) -> None:
    table = Table(title=f"Listing criteria {score.score}/{score.max_score}")
    table.add_column("Criterion")
    table.add_column("Requirement")
    table.add_column("Current", justify="right")
    table.add_column("Pass", justify="center")
    for criterion in score.criteria:
        mark = "[green]✓[/green]" if criterion.passed else "[red]✗[/red]"
        table.add_row(criterion.name, criterion.requirement, criterion.current, mark)
    console.print(table)


def print_history(history: PriceHistory) -> None:
    console.print(f"[bold]Price history[/bold] ({len(history.points)} × {history.interval})")
    if not history.points:
        console.print("  [dim]No candles available.[/dim]\n")
        return
    change = history.change_percent
    color = "green" if change >= 0 else "red"
    note = " [dim](synthetic)[/dim]" if history.source == SYNTHETIC else ""
    console.print(f"  Range:   ${history.low:,.4f} – ${history.high:,.4f}{note}")
    console.print(f"  Change:  [{color}]{change:+.2f}%[/{color}]")
    console.print(f"  Closes:  {_sparkline(history.closes)}\n")


def _sparkline(values: list[float]) -> str:
    low, high = min(values), max(values)
    span = high - low
    if span == 0:
        return _SPARK_BARS[0] * len(values)
    top = len(_SPARK_BARS) - 1
    return "".join(_SPARK_BARS[round((v - low) / span * top)] for v in values)
