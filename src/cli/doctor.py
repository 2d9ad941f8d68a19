"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import AppSettings, get_user_env_file, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="usage-dns Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    missing = settings.missing_credentials()
    if missing:
        table.add_row("Keen credentials", "FAIL", f"Missing {', '.join(missing)} -> `serve` will refuse to start")
    else:
        table.add_row("Keen credentials", "OK", f"Project {settings.keen_project}")
    table.add_row("GitHub owner", "OK", settings.github_owner)
    if settings.github_token:
        table.add_row("GitHub token", "OK", "Authenticated rate limit")
    else:
        table.add_row("GitHub token", "OPTIONAL", "Anonymous requests are rate-limited")
    table.add_row("Listen address", "OK", f"{settings.host}:{settings.port} (udp)")
    table.add_row("User config", "OK", str(get_user_env_file()))

    # Connectivity (best-effort)
    ok_github, detail_github = asyncio.run(_check_http(settings.github_api_url, settings))
    table.add_row("GitHub API", "OK" if ok_github else "FAIL", detail_github)
    ok_keen, detail_keen = asyncio.run(_check_http(settings.keen_base_url, settings))
    table.add_row("Keen.io API", "OK" if ok_keen else "FAIL", detail_keen)

    _console.print(table)

    if settings.port < 1024:
        _console.print(
            "\n[yellow]Note:[/yellow] ports below 1024 usually need elevated privileges; use `--port 5354` for local runs."
        )


@app.command(name="setup-keen")
def setup_keen() -> None:
    """Interactive telemetry setup (stores config in the user config .env)."""

    project = typer.prompt("Keen project ID").strip()
    write_key = typer.prompt("Keen write key", hide_input=True, confirmation_prompt=False).strip()
    owner = typer.prompt("GitHub owner", default=AppSettings().github_owner, show_default=True).strip()

    if not project or not write_key:
        raise typer.BadParameter("project ID and write key are required")

    env_path = write_user_env_vars(
        {
            "KEEN_PROJECT": project,
            "KEEN_WRITE_KEY": write_key,
            "GITHUB_OWNER": owner,
        }
    )

    _console.print(f"[green]Saved telemetry config to:[/green] {env_path}")
