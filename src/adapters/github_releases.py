"""Búsqueda de releases: GitHub.

- Usa la API oficial `GET /repos/{owner}/{repo}/releases/latest`.
- 404 significa que el repo no existe *o* que no tiene releases publicadas:
  ambos casos se reportan como "no encontrado" (`None`).
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import ReleaseLookupError
from core.interfaces.release_lookup import ReleaseLookup


class GitHubReleaseLookup(ReleaseLookup):
    """Devuelve el `tag_name` de la última release de un repositorio."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._settings.github_token:
            headers["Authorization"] = f"Bearer {self._settings.github_token}"
        return headers

    async def latest(self, owner: str, project: str) -> str | None:
        base = self._settings.github_api_url.rstrip("/")
        url = f"{base}/repos/{quote(owner, safe='')}/{quote(project, safe='')}/releases/latest"

        try:
            async with build_async_client(
                self._settings,
                extra_headers=self._headers(),
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except httpx.HTTPError as exc:
            raise ReleaseLookupError(f"GET {url} failed: {exc}") from exc

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise ReleaseLookupError(f"GET {url} returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise ReleaseLookupError(f"GET {url} returned invalid JSON") from exc

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag:
            raise ReleaseLookupError(f"release of {owner}/{project} is missing tag_name")
        return tag
