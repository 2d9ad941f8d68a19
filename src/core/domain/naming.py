"""Codec de nombres `usage-v1`.

Formato:
    <version>.<project>.usage-v1.

La versión suele contener puntos (`1.2.3`) y el proyecto es una sola
etiqueta, por eso `decode` separa por el *último* punto.
"""

from __future__ import annotations

from core.domain.errors import BadSuffix, EmptyProject, EmptyVersion, MissingSeparator
from core.domain.models import ProjectVersion

SUFFIX = ".usage-v1."
LATEST = "latest"


def encode(pv: ProjectVersion) -> str:
    return f"{pv.version}.{pv.project}{SUFFIX}"


def latest_alias(project: str) -> str:
    """Nombre canónico que representa "la versión más nueva" de `project`."""

    return encode(ProjectVersion(project=project, version=LATEST))


def decode(name: str) -> ProjectVersion:
    """Decodifica un nombre `usage-v1` o lanza un `DecodeError`.

    Raises:
        BadSuffix: el nombre no termina exactamente en `.usage-v1.`.
        MissingSeparator: no hay punto entre versión y proyecto.
        EmptyVersion: la parte de versión está vacía.
        EmptyProject: la parte de proyecto está vacía.
    """

    if not name.endswith(SUFFIX):
        raise BadSuffix(name, "should end in '.usage-v1.'")
    prefix = name[: -len(SUFFIX)]

    version, sep, project = prefix.rpartition(".")
    if not sep:
        raise MissingSeparator(name, "missing '.' separator")
    if not version:
        raise EmptyVersion(name, "version should not be empty")
    if not project:
        raise EmptyProject(name, "project should not be empty")

    return ProjectVersion(project=project, version=version)
