"""
Shared CLI plumbing — per-invocation wiring and report rendering.

The first command that needs the engine triggers the pre-check; the
context, registry and runtime are then cached on ``ctx.obj`` for the
rest of the invocation.
"""

from __future__ import annotations

import logging
import sys
from typing import NoReturn

import click

from sullivan.adapters.base import RuntimeAdapter, RuntimeUnavailable
from sullivan.core.config.loader import RegistryError, load_project_registry
from sullivan.core.context import ExecutionContext
from sullivan.core.engine.controller import LifecycleController
from sullivan.core.models.health import Classification, EngineHealth, HealthReport
from sullivan.core.models.plan import OperationReport
from sullivan.core.models.service import ServiceRegistry

logger = logging.getLogger(__name__)


def fail(message: str) -> NoReturn:
    """Print an error and exit 1."""
    click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


# ── Wiring ──────────────────────────────────────────────────────


def get_context(ctx: click.Context) -> ExecutionContext:
    obj = ctx.obj
    if "context" not in obj:
        obj["context"] = ExecutionContext.from_env(obj.get("root"))
    return obj["context"]


def get_registry(ctx: click.Context) -> ServiceRegistry:
    obj = ctx.obj
    if "registry" not in obj:
        try:
            obj["registry"] = load_project_registry(get_context(ctx).project_root)
        except RegistryError as e:
            fail(str(e))
    return obj["registry"]


def get_runtime(ctx: click.Context) -> RuntimeAdapter:
    """The engine for this invocation, checked once.

    Exits 1 when docker or compose is unavailable.
    """
    obj = ctx.obj
    if "runtime" in obj:
        return obj["runtime"]

    context = get_context(ctx)
    registry = get_registry(ctx)

    runtime: RuntimeAdapter
    try:
        if obj.get("mock"):
            from sullivan.adapters.mock import MockRuntime

            runtime = MockRuntime(registry)
            runtime.check()
        else:
            from sullivan.adapters.containers.docker import DockerRuntime
            from sullivan.core.services.docker_common import check_engine, detect_compose_command

            # This is DockerRuntime.check(); it must pass before compose is probed.
            check_engine(context.project_root)
            compose = detect_compose_command(context.project_root)
            context = context.model_copy(update={"compose_command": compose})
            obj["context"] = context
            runtime = DockerRuntime(context)
    except RuntimeUnavailable as e:
        fail(str(e))

    logger.debug("Using %r for %s", runtime, context.project_root)
    obj["runtime"] = runtime
    return runtime


def get_controller(ctx: click.Context) -> LifecycleController:
    runtime = get_runtime(ctx)
    return LifecycleController(get_context(ctx), runtime, get_registry(ctx))


# ── Rendering ───────────────────────────────────────────────────

_HEALTH_ICONS = {
    Classification.HEALTHY: ("✓", "green"),
    Classification.UNHEALTHY: ("✗", "red"),
    Classification.PENDING: ("◐", "yellow"),
    Classification.INFORMATIONAL: ("●", "blue"),
    Classification.UNKNOWN: ("?", "yellow"),
}


def header(title: str) -> None:
    click.echo()
    click.secho(f"═══ {title} ═══", fg="cyan", bold=True)
    click.echo()


def render_health(report: HealthReport) -> None:
    if report.empty:
        click.secho("⚠️  No containers running", fg="yellow")
        return

    for record in report.records:
        icon, color = _HEALTH_ICONS[record.classification]
        if record.engine_health is EngineHealth.NONE_STOPPED:
            icon, color = "○", "yellow"
        click.echo("  ", nl=False)
        click.secho(icon, fg=color, nl=False)
        click.echo(f" {record.name}: {record.detail}")

    click.echo()
    click.echo(
        f"   Summary: {report.healthy_count} healthy, "
        f"{report.unhealthy_count} unhealthy, {report.other_count} other"
    )


def render_endpoints(registry: ServiceRegistry) -> None:
    header("Service Endpoints")
    groups = registry.endpoint_groups()
    width = max((len(e.label) for eps in groups.values() for e in eps), default=0) + 2
    for group, endpoints in groups.items():
        click.secho(f"{group}:", bold=True)
        for ep in endpoints:
            click.echo(f"  {ep.label + ':':<{width}} {ep.url}")
        click.echo()


def render_report(report: OperationReport, registry: ServiceRegistry) -> None:
    """Human rendering of a lifecycle operation."""
    for step in report.warnings:
        click.secho(f"⚠️  {step.phase}: {step.reason}", fg="yellow")

    if report.status_table:
        header("Service Status")
        click.echo(report.status_table)

    if report.health is not None:
        click.echo()
        render_health(report.health)

    if report.show_endpoints:
        render_endpoints(registry)

    target = report.plan.describe() if report.plan else "stack"
    click.secho(f"✅ {report.operation.capitalize()} complete: {target}", fg="green", bold=True)
