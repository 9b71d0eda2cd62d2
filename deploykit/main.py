"""
deploykit — CLI entrypoint.

Usage:
    python -m deploykit.main --help
    python -m deploykit.main rules synthesize package.yml
    python -m deploykit.main migrate preview batch.yml --json
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from deploykit import __version__
from deploykit.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="deploykit")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to deploykit.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """deploykit — detection rules and commands for Win32 app packaging."""
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    from deploykit.core.config.loader import ConfigError, load_settings

    try:
        ctx.obj["settings"] = load_settings(ctx.obj["config_path"])
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    "Start the packaging API server."
    from deploykit.ui.web.server import create_app, run_server

    settings = ctx.obj["settings"]
    app = create_app(settings=settings)
    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("⚡ deploykit — packaging API", bold=True)
    click.echo(f"   API:      http://{host}:{port}/api")
    click.echo(f"   Vendor:   {settings.registry_vendor}")
    if debug:
        click.secho("   Logging: DEBUG (all output)", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


# ── Register sub-command groups from deploykit/ui/cli/ ────────────

from deploykit.ui.cli.migrate import migrate  # noqa: E402
from deploykit.ui.cli.rules import rules  # noqa: E402

cli.add_command(rules)
cli.add_command(migrate)


if __name__ == "__main__":
    cli()
