"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from core.domain.models import ProjectVersion
from core.domain.naming import encode


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida del servidor."""

    title = Text("usage-dns", style="bold cyan")
    subtitle = Text("Versiones y telemetría de uso sobre DNS", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_version_panel(latest: ProjectVersion, current: ProjectVersion | None = None) -> Panel:
    """Panel con la última versión publicada (y la local, si se conoce)."""

    up_to_date = current is None or current.version == latest.version
    body = Text()
    body.append("Project: ", style="bold")
    body.append(f"{latest.project}\n")
    if current is not None:
        body.append("Current: ", style="bold")
        body.append(f"{current.version}\n")
    body.append("Latest:  ", style="bold")
    body.append(latest.version, style="green" if up_to_date else "yellow")
    body.append(f"\n\n{encode(latest)}", style="dim")

    if current is None:
        title = "Latest release"
    else:
        title = "Up to date" if up_to_date else "Update available"
    return Panel(body, title=title, border_style="green" if up_to_date else "yellow")
