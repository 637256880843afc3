"""otel-cicd command line entrypoint."""

from __future__ import annotations
import sys
from typing import Annotated
import click
import httpx
import typer
from rich.console import Console
from otel_cicd.config import load_action_settings
from otel_cicd.github import GitHubAPIError
from otel_cicd.logging_config import configure_logging
from otel_cicd.runner import run as run_export
from otel_cicd.tracing.linker import InvalidParentTraceIdError


app = typer.Typer(help="Export GitHub Actions workflow runs as OpenTelemetry traces.")


@app.callback()
def main() -> None:
    """Export GitHub Actions workflow runs as OpenTelemetry traces."""


@app.command("run")
def run_command(
    run_id: Annotated[
        int | None,
        typer.Option("--run-id", help="Workflow run id (defaults to GITHUB_RUN_ID)."),
    ] = None,
    repository: Annotated[
        str | None,
        typer.Option("--repository", help="Repository as owner/repo."),
    ] = None,
    otlp_endpoint: Annotated[
        str | None,
        typer.Option("--otlp-endpoint", help="OTLP collector endpoint."),
    ] = None,
    otlp_headers: Annotated[
        str | None,
        typer.Option("--otlp-headers", help="Exporter headers as k=v,k2=v2."),
    ] = None,
    service_name: Annotated[
        str | None,
        typer.Option("--service-name", help="Override the service.name resource."),
    ] = None,
    extra_attributes: Annotated[
        str | None,
        typer.Option("--extra-attributes", help="Resource attributes as k=v,k2=v2."),
    ] = None,
    parent_trace_id: Annotated[
        str | None,
        typer.Option("--parent-trace-id", help="Continue this 32-hex trace id."),
    ] = None,
    console_only: Annotated[
        bool,
        typer.Option("--console-only", help="Print spans instead of exporting them."),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level."),
    ] = None,
) -> None:
    """Trace one workflow run and print its trace id."""
    console = Console()
    try:
        settings = load_action_settings(refresh=True).with_overrides(
            run_id=run_id,
            repository=repository,
            otlp_endpoint=otlp_endpoint,
            otlp_headers=otlp_headers,
            service_name=service_name,
            extra_attributes=extra_attributes,
            parent_trace_id=parent_trace_id,
            console_only=console_only or None,
            log_level=log_level,
        )
    except ValueError as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    configure_logging(settings.log_level)
    try:
        trace_id = run_export(settings)
    except (InvalidParentTraceIdError, GitHubAPIError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    except httpx.HTTPError as exc:
        console.print(f"[red]Error:[/red] GitHub request failed: {exc}")
        raise typer.Exit(code=1) from exc

    console.print(trace_id)


def run() -> None:
    """Entry point used by console scripts."""
    console = Console()
    try:
        exit_code = app(standalone_mode=False)
    except click.UsageError as exc:
        console.print(f"[red]Error:[/red] {exc.message}")
        if exc.ctx and exc.ctx.command_path:
            help_cmd = f"{exc.ctx.command_path} --help"
            console.print(f"\nRun '[cyan]{help_cmd}[/cyan]' for usage information.")
        sys.exit(1)
    if isinstance(exit_code, int) and exit_code:
        sys.exit(exit_code)


__all__ = ["app", "run"]
