"""
CLI commands for the stack lifecycle: start, stop, restart, rebuild, pull.

Thin wrappers over ``sullivan.core.engine.controller``. Service names
are optional; none (or "all") means the whole stack in tier order.
"""

from __future__ import annotations

import json

import click

from sullivan.adapters.base import RuntimeAdapterError
from sullivan.core.models.plan import OperationReport
from sullivan.ui.cli.common import fail, get_controller, get_registry, header, render_report

_services = click.argument("services", nargs=-1)
_as_json = click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")

_TITLES = {
    "start": "Starting Sullivan Services",
    "stop": "Stopping Sullivan Services",
    "restart": "Restarting Sullivan Services",
    "rebuild": "Rebuilding Sullivan Services",
    "pull": "Pulling Docker Images",
}


def _run(ctx: click.Context, operation: str, services: tuple[str, ...], as_json: bool) -> None:
    controller = get_controller(ctx)
    action = getattr(controller, operation)

    if not as_json:
        header(_TITLES[operation])

    try:
        report: OperationReport = action(list(services))
    except RuntimeAdapterError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return
    render_report(report, get_registry(ctx))


@click.command()
@_services
@_as_json
@click.pass_context
def start(ctx: click.Context, services: tuple[str, ...], as_json: bool) -> None:
    """Start services (creates .env if needed)."""
    _run(ctx, "start", services, as_json)


@click.command()
@_services
@_as_json
@click.pass_context
def stop(ctx: click.Context, services: tuple[str, ...], as_json: bool) -> None:
    """Stop services. Stopping everything also removes unused networks."""
    _run(ctx, "stop", services, as_json)


@click.command()
@_services
@_as_json
@click.pass_context
def restart(ctx: click.Context, services: tuple[str, ...], as_json: bool) -> None:
    """Restart services."""
    _run(ctx, "restart", services, as_json)


@click.command()
@_services
@_as_json
@click.pass_context
def rebuild(ctx: click.Context, services: tuple[str, ...], as_json: bool) -> None:
    """Stop, pull new images, and start fresh."""
    _run(ctx, "rebuild", services, as_json)


@click.command()
@_services
@_as_json
@click.pass_context
def pull(ctx: click.Context, services: tuple[str, ...], as_json: bool) -> None:
    """Pull latest images without starting."""
    _run(ctx, "pull", services, as_json)
