"""
CLI commands for observing the stack: status, logs, health, endpoints, info.
"""

from __future__ import annotations

import json
import sys

import click

from sullivan.adapters.base import RuntimeAdapterError
from sullivan.ui.cli.common import (
    fail,
    get_controller,
    get_registry,
    get_runtime,
    header,
    render_endpoints,
    render_health,
)

_as_json = click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")


@click.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show service status."""
    controller = get_controller(ctx)
    header("Service Status")
    try:
        click.echo(controller.status())
    except RuntimeAdapterError as e:
        fail(str(e))


@click.command()
@click.argument("services", nargs=-1)
@click.option("--tail", default=100, show_default=True, help="Lines of history per service.")
@click.option("--no-follow", is_flag=True, help="Print and exit instead of following.")
@click.pass_context
def logs(ctx: click.Context, services: tuple[str, ...], tail: int, no_follow: bool) -> None:
    """Tail service logs (Ctrl+C to exit)."""
    controller = get_controller(ctx)
    try:
        code = controller.logs(list(services), follow=not no_follow, tail=tail)
    except KeyboardInterrupt:
        code = 0
    except RuntimeAdapterError as e:
        fail(str(e))
    sys.exit(code)


@click.command()
@_as_json
@click.pass_context
def health(ctx: click.Context, as_json: bool) -> None:
    """Run health checks. Exits 1 if anything is unhealthy or nothing runs."""
    controller = get_controller(ctx)
    try:
        report = controller.health()
    except RuntimeAdapterError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        header("Health Check")
        render_health(report)
        click.echo()

    if not report.passed:
        sys.exit(1)


@click.command()
@_as_json
@click.pass_context
def endpoints(ctx: click.Context, as_json: bool) -> None:
    """Show service URLs. Static, not probed."""
    registry = get_registry(ctx)

    if as_json:
        data = {
            group: [ep.model_dump() for ep in eps]
            for group, eps in registry.endpoint_groups().items()
        }
        click.echo(json.dumps(data, indent=2))
        return

    render_endpoints(registry)


@click.command()
@_as_json
@click.pass_context
def info(ctx: click.Context, as_json: bool) -> None:
    """Show system and Docker info."""
    from sullivan.core.services.system_info import collect_system_info

    result = collect_system_info(get_runtime(ctx))

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    header("System Information")
    click.echo(f"Environment: {result['environment']}")
    click.echo(f"Hostname:    {result['hostname']}")
    click.echo(f"User:        {result['user']}")
    click.echo(f"Docker:      {result['docker']}")
    click.echo(f"Compose:     {result['compose']}")
    if result["memory"]:
        mem = result["memory"]
        click.echo(f"Memory:      {mem['total']} total, {mem['available']} available")
    if result["disk_free"]:
        click.echo(f"Disk:        {result['disk_free']} available on /")

    if result["engine_disk_usage"]:
        click.echo()
        click.secho("Docker disk usage:", bold=True)
        click.echo(result["engine_disk_usage"])
    click.echo()
