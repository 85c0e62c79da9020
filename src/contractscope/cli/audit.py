"""CLI command: contractscope audit <file> — full orchestrated audit."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from contractscope.audit.models import AuditResult, ProgressEvent, TokenContext
from contractscope.audit.orchestrator import AuditOrchestrator
from contractscope.cli.market import print_assessment
from contractscope.cli.scan import SEVERITY_COLORS, SEVERITY_ORDER
from contractscope.config import ContractScopeConfig
from contractscope.detector.models import Severity
from contractscope.errors import InvalidInputError
from contractscope.storage.db import get_db
from contractscope.storage.repos import AuditRepo

console = Console(stderr=True)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--token", "-t", default=None, help="Token symbol for market context.")
@click.option("--supply", type=float, default=None, help="Total token supply.")
@click.option(
    "--vulnerable",
    type=float,
    default=None,
    help="Token amount exposed by the vulnerability (default: 1% of supply).",
)
@click.option("--holders", type=int, default=0, help="Known holder count.")
@click.option("--offline", is_flag=True, help="Use synthetic market data only.")
@click.option("--save", is_flag=True, help="Persist the audit record.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON to stdout.")
@click.pass_context
def audit(
    ctx: click.Context,
    file: str,
    token: str | None,
    supply: float | None,
    vulnerable: float | None,
    holders: int,
    offline: bool,
    save: bool,
    as_json: bool,
) -> None:
    """Detect, score, and put a contract's findings in market context."""
    config = ContractScopeConfig.load()
    if offline:
        config.offline = True
    policy = config.load_scoring_policy(ctx.obj.get("policy_path"))

    if token and supply is None:
        raise click.UsageError("--supply is required with --token")

    context = None
    if token:
        context = TokenContext(
            symbol=token,
            total_supply=supply,
            vulnerable_amount=vulnerable,
            holders=holders,
        )

    text = Path(file).read_text(encoding="utf-8", errors="ignore")

    console.print(
        f"[bold]ContractScope[/bold] auditing [cyan]{file}[/cyan] "
        f"with policy [cyan]{policy.name}[/cyan] ({policy.version})"
    )

    def on_progress(event: ProgressEvent) -> None:
        console.print(
            f"  [dim]{event.state.value:<15}[/dim] {event.step}: {event.detail}"
        )

    async def _run() -> AuditResult:
        db = await get_db(config.db_path) if save else None
        try:
            orchestrator = AuditOrchestrator(
                source=config.build_source(),
                policy=policy,
                sink=AuditRepo(db) if db is not None else None,
                on_progress=on_progress,
            )
            return await orchestrator.run(text, context)
        finally:
            if db is not None:
                await db.close()

    try:
        result = asyncio.run(_run())
    except InvalidInputError as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        raise SystemExit(2)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)

    if any(f.severity == Severity.HIGH for f in result.findings):
        sys.exit(1)


def _print_result(result: AuditResult) -> None:
    console.print()
    if result.findings:
        table = Table(title="Findings", show_lines=False)
        table.add_column("Severity", style="bold", width=8)
        table.add_column("Location", justify="right")
        table.add_column("Finding")
        table.add_column("Risk", justify="right")
        for finding in sorted(result.findings, key=lambda f: SEVERITY_ORDER[f.severity]):
            color = SEVERITY_COLORS[finding.severity]
            table.add_row(
                f"[{color}]{finding.severity.value}[/{color}]",
                finding.location,
                finding.name,
                f"{finding.risk_score:.1f}",
            )
        console.print(table)
    else:
        console.print("[green]No findings.[/green]")

    console.print(
        f"\nSecurity score: [bold]{result.security_score}/100[/bold] "
        f"(policy {result.policy_version})"
    )
    console.print(f"Rule score: [bold]{result.rule_score}/100[/bold]\n")

    if result.market is not None:
        print_assessment(result.market)

    if result.record is not None:
        console.print(
            f"Stored as [cyan]{result.record.id}[/cyan] "
            f"({result.record.status.value})"
        )
