"""Contrato de búsqueda de releases.

Por qué Protocol:
- Un único método, estructural: cualquier objeto con `latest` sirve.
- El resolver no sabe si detrás hay GitHub, un mirror o un stub de test.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ReleaseLookup(Protocol):
    """Devuelve el tag de la release publicada más reciente."""

    async def latest(self, owner: str, project: str) -> str | None:
        """Tag de la última release de `owner/project`.

        Devuelve `None` si el proyecto no existe o no tiene releases.
        Lanza `ReleaseLookupError` ante fallos de red o del backend.
        """

        ...
