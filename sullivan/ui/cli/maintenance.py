"""
CLI commands for maintenance: cleanup and secrets.
"""

from __future__ import annotations

import json

import click

from sullivan.core.services.env_config import ConfigError, EnvConfig
from sullivan.ui.cli.common import fail, get_context, get_registry, get_runtime, header

_STATUS_ICONS = {"ok": ("✓", "green"), "soft_failed": ("⚠", "yellow"), "skipped": ("–", "white")}


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def cleanup(ctx: click.Context, as_json: bool) -> None:
    """Full Docker cleanup (orphans, networks, volumes, images).

    Best-effort: individual failures are reported, never fatal.
    Database volumes are never removed.
    """
    from sullivan.core.services.cleanup import CleanupEngine

    engine = CleanupEngine(get_runtime(ctx), get_registry(ctx))
    if not as_json:
        header("Docker Cleanup")

    result = engine.full_cleanup()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    for phase in result.phases:
        icon, color = _STATUS_ICONS[phase.status]
        click.secho(f"  {icon} {phase.phase}", fg=color, nl=False)
        if phase.removed:
            click.echo(f": removed {', '.join(phase.removed)}", nl=False)
        if phase.reason:
            click.echo(f" ({phase.reason})", nl=False)
        click.echo()

    if result.disk_usage:
        click.echo()
        click.secho("Docker disk usage:", bold=True)
        click.echo(result.disk_usage)

    click.echo()
    click.secho(f"✅ Cleanup complete ({result.removed_count} removed)", fg="green", bold=True)


@click.command()
@click.pass_context
def secrets(ctx: click.Context) -> None:
    """Generate/update secrets in .env.

    Only placeholder values are replaced; the file is backed up first.
    """
    get_runtime(ctx)  # engine pre-check, as for every command
    config = EnvConfig(get_context(ctx).env_file)
    header("Generating Secrets")

    try:
        config.ensure(generate=False)
        written = config.generate_secrets()
    except ConfigError as e:
        fail(str(e))

    if not written:
        click.secho("✅ All secrets already set", fg="green")
        return
    for key in written:
        click.echo(f"   • {key}")
    click.secho(f"✅ Updated {len(written)} value(s) in {config.path}", fg="green", bold=True)
