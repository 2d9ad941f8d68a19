"""Errores del dominio.

Todos heredan de `UsageDNSError` para que los adaptadores puedan capturar la
familia completa sin conocer cada caso. Los errores de decodificación son
además `ValueError`: la entrada del cliente está mal formada.
"""

from __future__ import annotations


class UsageDNSError(Exception):
    """Raíz de los errores del proyecto."""


class DecodeError(UsageDNSError, ValueError):
    """El nombre consultado no respeta el formato `<version>.<project>.usage-v1.`."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name!r}: {reason}")
        self.name = name
        self.reason = reason


class BadSuffix(DecodeError):
    pass


class MissingSeparator(DecodeError):
    pass


class EmptyVersion(DecodeError):
    pass


class EmptyProject(DecodeError):
    pass


class ReleaseLookupError(UsageDNSError):
    """Fallo de red o del backend al buscar la última release."""


class TelemetryError(UsageDNSError):
    """No se pudo registrar (o encolar) un evento de uso."""


class UsageClientError(UsageDNSError):
    """Fallo del intercambio DNS en el lado cliente."""


class NoAnswer(UsageClientError):
    """La respuesta no contiene ningún registro PTR."""
