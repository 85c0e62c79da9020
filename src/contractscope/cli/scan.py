"""CLI command: contractscope scan <directory> — detector over a contract tree."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from contractscope.config import ContractScopeConfig
from contractscope.detector.engine import Detector
from contractscope.detector.models import ScanResult, Severity
from contractscope.scoring.calculator import security_score

console = Console(stderr=True)

SEVERITY_COLORS = {
    Severity.LOW: "blue",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "red",
}

SEVERITY_ORDER = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Directory or file names to exclude from scan.",
)
@click.pass_context
def scan(
    ctx: click.Context,
    directory: str,
    exclude: tuple[str, ...],
) -> None:
    """Scan Solidity and Vyper sources for vulnerability patterns."""
    config = ContractScopeConfig.load()
    policy = config.load_scoring_policy(ctx.obj.get("policy_path"))

    console.print(
        f"[bold]ContractScope[/bold] scanning [cyan]{directory}[/cyan] "
        f"with policy [cyan]{policy.name}[/cyan] ({policy.version})\n"
    )

    detector = Detector(exclude_patterns=list(exclude))
    result = detector.scan(directory)

    if not result.findings:
        console.print("[green]No findings.[/green]")
        _print_summary(result)
        return

    table = Table(title="Findings", show_lines=False)
    table.add_column("Severity", style="bold", width=8)
    table.add_column("File", style="cyan")
    table.add_column("Location", justify="right")
    table.add_column("Finding")

    for file_path, findings in sorted(result.findings.items()):
        for finding in sorted(findings, key=lambda f: SEVERITY_ORDER[f.severity]):
            color = SEVERITY_COLORS[finding.severity]
            table.add_row(
                f"[{color}]{finding.severity.value}[/{color}]",
                _shorten_path(file_path, result.directory),
                finding.location,
                finding.name,
            )

    console.print(table)

    for file_path, findings in sorted(result.findings.items()):
        console.print(
            f"  {_shorten_path(file_path, result.directory)}: "
            f"security score [bold]{security_score(findings, policy)}/100[/bold]"
        )
    _print_summary(result)

    high_count = sum(
        1
        for findings in result.findings.values()
        for f in findings
        if f.severity == Severity.HIGH
    )
    if high_count > 0:
        console.print(f"\n[red]{high_count} high-severity finding(s)[/red]")
        sys.exit(1)


def _print_summary(result: ScanResult) -> None:
    console.print(
        f"\nScanned {result.files_scanned} files "
        f"({result.files_skipped} skipped) "
        f"in {result.duration:.2f}s"
    )
    console.print(f"Total findings: {result.total_findings}")


def _shorten_path(file_path: str, base_dir: str) -> str:
    """Shorten file path relative to scan directory."""
    if file_path.startswith(base_dir):
        return file_path[len(base_dir) :].lstrip("/")
    return file_path
