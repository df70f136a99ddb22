"""alien CLI - Main entry point."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from alien import __version__
from alien.core.config import Settings
from alien.core.exceptions import AlienError
from alien.core.logging import configure_logging

app = typer.Typer(
    name="alien",
    help="👽 Alien probes your endpoints and exposes the results as Prometheus metrics",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        console.print(f"alien v{__version__}")
        raise typer.Exit()


def build_client(timeout: float) -> httpx.Client:
    """HTTP client used by ``alien check``."""
    return httpx.Client(timeout=timeout, follow_redirects=True)


def success_filter_for(code: int, contains: Optional[str]):
    from alien.probe import AllOf, ResponseCode, ResponseContains

    if contains is None:
        return ResponseCode(code)
    return AllOf([ResponseCode(code), ResponseContains(contains)])


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Alien probes your endpoints and filters the result to decide success."""
    pass


@app.command()
def run(
    endpoints: Optional[List[str]] = typer.Argument(None, help="Endpoints to probe"),
    config: Optional[Path] = typer.Option(None, help="Path to configuration file"),
    code: int = typer.Option(200, help="Status code counted as success"),
    contains: Optional[str] = typer.Option(None, help="Text the body must also contain"),
    frequency: Optional[float] = typer.Option(None, help="Seconds between probes"),
    method: Optional[str] = typer.Option(None, help="HTTP method"),
    host: Optional[str] = typer.Option(None, help="Metrics bind address"),
    port: Optional[int] = typer.Option(None, help="Metrics port"),
    path: Optional[str] = typer.Option(None, help="Metrics path"),
    log_level: Optional[str] = typer.Option(None, help="Log level"),
    json_logs: bool = typer.Option(False, "--json-logs/--no-json-logs", help="Output JSON logs"),
) -> None:
    """
    🛸 Probe endpoints until interrupted, serving metrics meanwhile.

    Endpoints given as arguments are checked for the --code status (and the
    --contains text, if set); probes from the configuration file use their
    own success filters.
    """
    from alien.controller import Alien
    from alien.core.models import ProbeDefinition
    from alien.probe.loader import build_probes

    settings = Settings.from_file_or_default(config)
    if frequency is not None:
        settings.probe.frequency = frequency
    if method is not None:
        settings.probe.method = method
    if host is not None:
        settings.metrics.host = host
    if port is not None:
        settings.metrics.port = port
    if path is not None:
        settings.metrics.path = path
    if log_level is not None:
        settings.log.level = log_level
    if json_logs:
        settings.log.json_format = True

    try:
        configure_logging(
            level=settings.log.level,
            json_format=settings.log.json_format,
            log_file=str(settings.log.log_file) if settings.log.log_file else None,
        )
    except AlienError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    success = {"code": code} if contains is None else {
        "all": [{"code": code}, {"contains": contains}],
    }
    for endpoint in endpoints or []:
        settings.probes.append(ProbeDefinition(endpoint=endpoint, success=success))

    if not settings.probes:
        console.print("[red]Error: No endpoints to probe[/red]")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold cyan]Probes:[/bold cyan] {len(settings.probes)}\n"
        f"[bold cyan]Default frequency:[/bold cyan] {settings.probe.frequency:g}s\n"
        f"[bold cyan]Metrics:[/bold cyan] {settings.metrics.host}:{settings.metrics.port}{settings.metrics.path}",
        title="👽 Alien Configuration",
    ))

    alien = Alien(settings.metrics)
    try:
        for probe in build_probes(settings):
            alien.add_probe(probe)
    except AlienError as e:
        console.print(f"[red]Error: {e}[/red]")
        # Unwind the probes already started before exiting
        for probe in alien.probes:
            alien.remove_probe(probe)
        raise typer.Exit(1)

    alien.run()
    console.print("[green]✓ Stopped[/green]")


@app.command()
def check(
    endpoint: str = typer.Argument(..., help="Endpoint to probe once"),
    code: int = typer.Option(200, help="Status code counted as success"),
    contains: Optional[str] = typer.Option(None, help="Text the body must also contain"),
    method: str = typer.Option("GET", help="HTTP method"),
    payload: str = typer.Option("", help="Request body"),
    timeout: float = typer.Option(30.0, help="Request timeout in seconds"),
) -> None:
    """
    🎯 Probe an endpoint once and report whether it succeeded.

    Exits with status 0 on success and 1 on failure.
    """
    from prometheus_client import CollectorRegistry

    from alien.core.exceptions import TransportError
    from alien.core.metrics import ProbeMetrics
    from alien.probe import (
        Probe,
        on_failure,
        on_success,
        with_http_client,
        with_method,
        with_payload,
        with_success_filter,
    )

    outcome: dict[str, bool] = {}
    success_filter = success_filter_for(code, contains)

    try:
        probe = Probe(
            endpoint,
            with_method(method),
            with_payload(payload),
            with_http_client(build_client(timeout)),
            with_success_filter(success_filter),
            on_success(lambda result: outcome.update(success=True)),
            on_failure(lambda result: outcome.update(success=False)),
            metrics=ProbeMetrics(CollectorRegistry()),
        )
    except AlienError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    try:
        result = probe.trigger()
    except TransportError as e:
        result = e.result
    except AlienError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        probe.close()

    table = Table(title=f"{method} {endpoint}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Filter", str(success_filter))
    if result.ok:
        table.add_row("Status", str(result.code))
        table.add_row("Body", f"{len(result.body)} characters")
    else:
        table.add_row("Error", f"[red]{result.error}[/red]")
    console.print(table)

    if outcome.get("success"):
        console.print("[green]✓ Success[/green]")
        return

    console.print("[red]✗ Failure[/red]")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
