"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (GitHub/Keen/UDP) lean config de forma consistente.
- El resolver recibe un `ResolverConfig` inmutable, nunca lee el entorno.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

USAGE_CHANNEL = "usage"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "usage-dns"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "usage-dns"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "usage-dns"
    return Path.home() / ".config" / "usage-dns"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# usage-dns user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.

    Los nombres de variables son los históricos del servicio (`KEEN_PROJECT`,
    `HOST`, `PORT`...), sin prefijo.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    keen_project: str | None = Field(
        default=None,
        description="ID del proyecto Keen.io donde se registran los eventos de uso.",
    )
    keen_write_key: str | None = Field(
        default=None,
        description="Write key de Keen.io.",
    )
    keen_base_url: str = Field(
        default="https://api.keen.io/3.0",
        min_length=8,
        description="Base URL de la API de eventos de Keen.io.",
    )
    flush_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Intervalo de flush del cliente Keen por lotes (segundos).",
    )

    github_owner: str = Field(
        default="gliderlabs",
        min_length=1,
        validation_alias=AliasChoices("github_owner", "github_project"),
        description="Cuenta/organización de GitHub dueña de los proyectos consultados.",
    )
    github_token: str | None = Field(
        default=None,
        description="Token opcional para la API de GitHub (sube el rate limit).",
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        min_length=8,
        description="Base URL de la API REST de GitHub.",
    )

    host: str = Field(
        default="0.0.0.0",
        min_length=1,
        description="Dirección donde escucha el servidor DNS.",
    )
    port: int = Field(
        default=53,
        ge=0,
        le=65535,
        description="Puerto UDP del servidor DNS.",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout por request HTTP (segundos).",
    )
    lookup_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Tiempo máximo de una búsqueda de release dentro de una consulta.",
    )
    track_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Tiempo máximo para registrar un evento dentro de una consulta.",
    )
    user_agent: str = Field(
        default="usage-dns/0.1",
        min_length=1,
        description="User-Agent para peticiones HTTP (GitHub lo exige).",
    )

    def missing_credentials(self) -> list[str]:
        """Variables obligatorias para servir que no están definidas."""

        missing: list[str] = []
        if not self.keen_project:
            missing.append("KEEN_PROJECT")
        if not self.keen_write_key:
            missing.append("KEEN_WRITE_KEY")
        return missing


@dataclass(frozen=True)
class ResolverConfig:
    """Valores inmutables que el resolver necesita por consulta."""

    owner: str
    channel: str = USAGE_CHANNEL
    lookup_timeout: float = 5.0
    track_timeout: float = 2.0

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ResolverConfig":
        return cls(
            owner=settings.github_owner,
            lookup_timeout=settings.lookup_timeout_seconds,
            track_timeout=settings.track_timeout_seconds,
        )
