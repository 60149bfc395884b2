"""
Sullivan — CLI entrypoint.

Usage:
    sullivan <command> [services...]
    python -m sullivan.main status
    python -m sullivan.main start emby sonarr
"""

from __future__ import annotations

from pathlib import Path

import click

from sullivan import __version__
from sullivan.core.observability.logging_config import resolve_level, setup_logging

_EPILOG = """\b
Services:
  Specify service names to target specific services, or omit for all.

\b
Examples:
  sullivan start                    # Start all services
  sullivan start emby sonarr        # Start only emby and sonarr
  sullivan stop                     # Stop all services
  sullivan rebuild sonarr radarr    # Rebuild ARR services
  sullivan logs emby                # Tail emby logs
  sullivan cleanup                  # Full Docker cleanup

\b
Files:
  Config:     <root>/.env
  Compose:    <root>/docker-compose.yml
  Registry:   <root>/sullivan.yml (optional)
"""


class SullivanGroup(click.Group):
    """Command group with short aliases and exit code 1 for unknown commands."""

    aliases = {
        "ps": "status",
        "log": "logs",
        "check": "health",
        "clean": "cleanup",
        "urls": "endpoints",
    }

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(self, ctx: click.Context, args: list[str]):
        cmd_name = args[0]
        if self.get_command(ctx, cmd_name) is None and not ctx.resilient_parsing:
            click.secho(f"❌ Unknown command: {cmd_name}", fg="red")
            click.echo()
            click.echo(ctx.get_help())
            ctx.exit(1)
        return super().resolve_command(ctx, args)


@click.group(
    cls=SullivanGroup,
    invoke_without_command=True,
    epilog=_EPILOG,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="sullivan")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root holding docker-compose.yml and .env (default: $SULLIVAN_ROOT or cwd).",
)
@click.option("--mock", is_flag=True, help="Use an in-memory engine (no docker calls).")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    root: Path | None,
    mock: bool,
) -> None:
    """SULLIVAN — media infrastructure management."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["root"] = root
    ctx.obj["mock"] = mock

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)


@cli.command("help")
@click.pass_context
def help_(ctx: click.Context) -> None:
    """Show this help."""
    click.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())


# ── Register commands from sullivan/ui/cli/ ─────────────────────

from sullivan.ui.cli.lifecycle import pull, rebuild, restart, start, stop  # noqa: E402
from sullivan.ui.cli.maintenance import cleanup, secrets  # noqa: E402
from sullivan.ui.cli.observe import endpoints, health, info, logs, status  # noqa: E402

cli.add_command(start)
cli.add_command(stop)
cli.add_command(restart)
cli.add_command(rebuild)
cli.add_command(status)
cli.add_command(logs)
cli.add_command(health)
cli.add_command(pull)
cli.add_command(cleanup)
cli.add_command(secrets)
cli.add_command(info)
cli.add_command(endpoints)


if __name__ == "__main__":
    cli()
