"""CLI entry-point (Typer).

Commands:
- `serve`: run the usage resolver over UDP.
- `latest`: ask a resolver for the newest version of a project.
- `report`: fire-and-forget usage report.
- `doctor`: configuration and connectivity checks.
"""

from __future__ import annotations

import asyncio

import typer
from pydantic import ValidationError
from rich.console import Console

from adapters.dns_server import run_server
from adapters.usage_client import DNS_HOST, DNS_PORT, DNS_TIMEOUT, request_latest, send
from cli import doctor
from cli.logging_setup import configure_logging
from cli.ui_components import build_version_panel, print_banner
from core.config import AppSettings
from core.domain.errors import UsageDNSError
from core.domain.models import ProjectVersion
from core.domain.naming import LATEST

app = typer.Typer(
    no_args_is_help=True,
    help="Software version discovery and usage telemetry over DNS.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    configure_logging(verbose)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default: HOST or 0.0.0.0)."),
    port: int | None = typer.Option(None, "--port", help="UDP port (default: PORT or 53)."),
    flush: float | None = typer.Option(None, "--flush", help="Keen.io batch flush interval in seconds."),
) -> None:
    """Run the usage resolver until interrupted."""

    overrides = {
        key: value
        for key, value in (("host", host), ("port", port), ("flush_interval_seconds", flush))
        if value is not None
    }
    try:
        settings = AppSettings(**overrides)
    except ValidationError as exc:
        _err_console.print(f"[red]Invalid configuration:[/red]\n{exc}")
        raise typer.Exit(code=1) from exc

    missing = settings.missing_credentials()
    if missing:
        _err_console.print(f"[red]Please set {' and '.join(missing)}[/red]")
        raise typer.Exit(code=1)

    print_banner(_err_console)
    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        _err_console.print("[dim]Server stopped.[/dim]")
    except OSError as exc:
        _err_console.print(f"[red]Cannot listen on {settings.host}:{settings.port}:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def latest(
    project: str = typer.Argument(..., help="Project (repository) name."),
    current: str | None = typer.Argument(None, help="Version you are running, for comparison."),
    host: str = typer.Option(DNS_HOST, "--host", help="Resolver host."),
    port: int = typer.Option(DNS_PORT, "--port", help="Resolver port."),
    timeout: float = typer.Option(DNS_TIMEOUT, "--timeout", help="Query timeout in seconds."),
    as_json: bool = typer.Option(False, "--json", help="Print the answer as JSON."),
) -> None:
    """Look up the latest released version of PROJECT."""

    requested = ProjectVersion(project=project, version=current or LATEST)
    try:
        answer = request_latest(requested, host=host, port=port, timeout=timeout)
    except (UsageDNSError, ValueError) as exc:
        _err_console.print(f"[red]Lookup failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        _console.print_json(answer.model_dump_json())
        return
    _console.print(build_version_panel(answer, requested if current else None))


@app.command()
def report(
    project: str = typer.Argument(..., help="Project (repository) name."),
    version: str = typer.Argument(..., help="Version being used."),
    host: str = typer.Option(DNS_HOST, "--host", help="Resolver host."),
    port: int = typer.Option(DNS_PORT, "--port", help="Resolver port."),
    timeout: float = typer.Option(DNS_TIMEOUT, "--timeout", help="Send timeout in seconds."),
) -> None:
    """Report usage of PROJECT at VERSION without waiting for an answer."""

    pv = ProjectVersion(project=project, version=version)
    try:
        send(pv, host=host, port=port, timeout=timeout)
    except (UsageDNSError, ValueError) as exc:
        _err_console.print(f"[red]Report failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _console.print(f"[green]Reported[/green] {pv.project} {pv.version}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
