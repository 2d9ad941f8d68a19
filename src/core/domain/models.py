"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- `ProjectVersion` es un valor inmutable (`frozen=True`): se compara por
  estructura y es hashable, así los tests y los stubs pueden usarlo como clave.
- La misma clase se serializa tal cual como evento de uso.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class ProjectVersion(BaseModel):
    """Un par proyecto/versión, consultado o resuelto.

    `project` se espera como una sola etiqueta DNS (sin puntos) pero no se
    valida más allá de no estar vacío. `version` puede contener puntos
    (p.ej. `1.2.3`).
    """

    model_config = ConfigDict(frozen=True)

    project: str = Field(
        ...,
        min_length=1,
        description="Identificador del proyecto (repositorio en el registro de releases).",
    )
    version: str = Field(
        ...,
        min_length=1,
        description="Tag de versión, o el alias literal `latest`.",
    )

    def as_event(self) -> dict[str, Any]:
        """Payload JSON enviado al backend de telemetría."""

        return self.model_dump(mode="json")
