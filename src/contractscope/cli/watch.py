"""CLI command: contractscope watch <symbol> — stream live price ticks."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console

from contractscope.config import ContractScopeConfig
from contractscope.errors import InvalidInputError
from contractscope.market.models import pair_symbol

console = Console(stderr=True)


@click.command()
@click.argument("symbol")
@click.option(
    "--count",
    "-n",
    type=int,
    default=None,
    help="Stop after this many ticks (default: run until Ctrl+C).",
)
def watch(symbol: str, count: int | None) -> None:
    """Print streamed price ticks for SYMBOL."""
    try:
        pair = pair_symbol(symbol)
    except InvalidInputError as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        raise SystemExit(2)

    config = ContractScopeConfig.load()
    stream = config.build_stream()

    console.print(f"[bold]ContractScope[/bold] watching [cyan]{pair}[/cyan]")
    console.print("  Press Ctrl+C to stop.\n")

    last: list[float] = []

    def on_tick(price: float) -> None:
        arrow = ""
        if last:
            if price > last[0]:
                arrow = "[green]▲[/green]"
            elif price < last[0]:
                arrow = "[red]▼[/red]"
        console.print(f"  {arrow} [bold]{price:,.4f}[/bold]")
        last[:] = [price]

    try:
        delivered = asyncio.run(stream.subscribe(pair, on_tick, max_ticks=count))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
        return

    console.print(f"\n[dim]{delivered} tick(s) received.[/dim]")
