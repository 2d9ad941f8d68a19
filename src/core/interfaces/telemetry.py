"""Contrato de telemetría de uso.

Reglas de diseño:
- `record` es fire-and-forget: puede encolar y volver sin esperar la entrega.
- Solo lanza `TelemetryError` si el envío (o el encolado) falla en el acto.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ProjectVersion


@runtime_checkable
class UsageTelemetry(Protocol):
    async def record(self, channel: str, payload: ProjectVersion) -> None:
        """Registra un evento de uso en la colección `channel`."""

        ...
