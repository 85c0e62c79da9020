"""CLI command: contractscope server — start the web API."""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

from contractscope.config import ContractScopeConfig
from contractscope.scoring.policy import ScoringPolicy

console = Console(stderr=True)


@click.command()
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to listen on (default: 8471).",
)
@click.option("--offline", is_flag=True, help="Serve synthetic market data only.")
@click.pass_context
def server(ctx: click.Context, port: int | None, offline: bool) -> None:
    """Start the ContractScope web API."""
    config = ContractScopeConfig.load()
    if port is not None:
        config.web_port = port
    if offline:
        config.offline = True
    policy_path = (ctx.obj or {}).get("policy_path")
    if policy_path:
        config.policy_path = Path(policy_path)

    # Fail before binding if the policy is unreadable
    try:
        policy = config.load_scoring_policy()
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Cannot load scoring policy:[/red] {e}")
        raise SystemExit(2)

    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Web dependencies not installed.[/red]\n"
            "Install with: pip install contractscope[web]"
        )
        raise SystemExit(1)

    console.print(
        f"[bold]ContractScope[/bold] API starting on "
        f"[cyan]http://{config.web_host}:{config.web_port}/api/docs[/cyan]"
    )
    for label, value in runtime_summary(config, policy):
        console.print(f"  [dim]{label:<9}[/dim] {value}")
    console.print()

    import asyncio

    from contractscope.web.app import create_app

    async def _run() -> None:
        app = await create_app(config)
        server_config = uvicorn.Config(
            app,
            host=config.web_host,
            port=config.web_port,
            log_level="debug" if (ctx.obj or {}).get("verbose") else "info",
        )
        await uvicorn.Server(server_config).serve()

    asyncio.run(_run())


def runtime_summary(
    config: ContractScopeConfig, policy: ScoringPolicy
) -> list[tuple[str, str]]:
    """What the API will score with and where its market data comes from."""
    if config.offline:
        market = "synthetic data only (offline)"
    else:
        market = f"{config.market_url} (cache {config.cache_ttl:g}s)"
    return [
        ("policy", f"{policy.name} {policy.version}"),
        ("market", market),
        ("stream", config.stream_url),
        ("database", str(config.db_path)),
        ("bind", f"{config.web_host} only"),
    ]
