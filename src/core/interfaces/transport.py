"""Contrato del lado de escritura de un intercambio DNS."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import dns.message


@runtime_checkable
class ResponseWriter(Protocol):
    """Escribe la respuesta en el mismo intercambio que trajo la consulta."""

    def write_message(self, message: dns.message.Message) -> None:
        ...
