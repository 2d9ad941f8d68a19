"""Telemetría de uso: Keen.io.

Dos implementaciones del contrato `UsageTelemetry`:
- `KeenTelemetry`: un POST por evento (`/projects/{id}/events/{colección}`).
- `KeenBatchTelemetry`: encola en memoria y envía por lotes cada
  `flush_interval` segundos (`/projects/{id}/events`). `record` nunca espera
  a la red.

Nota:
- Un lote que falla se descarta (solo se loguea); no hay reintentos.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import TelemetryError
from core.domain.models import ProjectVersion
from core.interfaces.telemetry import UsageTelemetry

logger = logging.getLogger(__name__)


class KeenTelemetry(UsageTelemetry):
    """Cliente directo de la API de eventos de Keen.io."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        if not self._settings.keen_project or not self._settings.keen_write_key:
            raise ValueError("keen_project and keen_write_key are required")
        self._transport = transport

    @property
    def events_url(self) -> str:
        base = self._settings.keen_base_url.rstrip("/")
        return f"{base}/projects/{self._settings.keen_project}/events"

    async def _post(self, url: str, body: Any) -> None:
        headers = {"Authorization": str(self._settings.keen_write_key)}
        try:
            async with build_async_client(
                self._settings,
                extra_headers=headers,
                transport=self._transport,
            ) as client:
                resp = await client.post(url, json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TelemetryError(f"POST {url} failed: {exc}") from exc

        if resp.status_code >= 300:
            raise TelemetryError(f"POST {url} returned HTTP {resp.status_code}")

    async def record(self, channel: str, payload: ProjectVersion) -> None:
        await self._post(f"{self.events_url}/{channel}", payload.as_event())

    async def add_events(self, events: dict[str, list[dict[str, Any]]]) -> None:
        """Envía varios eventos, agrupados por colección, en un solo request."""

        await self._post(self.events_url, events)


class KeenBatchTelemetry(UsageTelemetry):
    """Encola eventos y los envía por lotes en segundo plano.

    Uso:
        async with KeenBatchTelemetry(KeenTelemetry(settings), 1.0) as telemetry:
            ...

    El buffer solo se toca desde el event loop, así que no necesita lock:
    `flush` lo intercambia por uno vacío antes de esperar a la red.
    """

    def __init__(self, client: KeenTelemetry, flush_interval: float) -> None:
        if flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        self._client = client
        self._flush_interval = flush_interval
        self._pending: dict[str, list[dict[str, Any]]] = {}
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def pending(self) -> int:
        return sum(len(events) for events in self._pending.values())

    async def record(self, channel: str, payload: ProjectVersion) -> None:
        if self._closed:
            raise TelemetryError("telemetry client is closed")
        self._pending.setdefault(channel, []).append(payload.as_event())

    async def flush(self) -> int:
        """Envía lo pendiente. Devuelve cuántos eventos se entregaron."""

        if not self._pending:
            return 0
        batch, self._pending = self._pending, {}
        count = sum(len(events) for events in batch.values())
        try:
            await self._client.add_events(batch)
        except TelemetryError as exc:
            logger.error("Dropping %d usage events: %s", count, exc)
            return 0
        logger.debug("Flushed %d usage events", count)
        return count

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._flush_interval)
            try:
                await self.flush()
            except Exception:
                logger.exception("Usage event flush failed")

    async def aclose(self) -> None:
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self.flush()

    async def __aenter__(self) -> "KeenBatchTelemetry":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
