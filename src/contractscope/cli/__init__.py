"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from contractscope import __version__


@click.group()
@click.version_option(version=__version__, prog_name="contractscope")
@click.option(
    "--policy",
    "-p",
    type=click.Path(exists=True),
    help="Path to a YAML scoring policy file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, policy: str | None, verbose: bool) -> None:
    """ContractScope — smart-contract vulnerability and market-risk scoring."""
    ctx.ensure_object(dict)
    ctx.obj["policy_path"] = policy
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from contractscope.cli.audit import audit  # noqa: F811
    from contractscope.cli.market import market  # noqa: F811
    from contractscope.cli.scan import scan  # noqa: F811
    from contractscope.cli.server import server  # noqa: F811
    from contractscope.cli.watch import watch  # noqa: F811

    main.add_command(scan)
    main.add_command(audit)
    main.add_command(market)
    main.add_command(watch)
    main.add_command(server)


_register_commands()
