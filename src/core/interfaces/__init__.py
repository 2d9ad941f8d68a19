"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos
  (GitHub, Keen.io, transporte UDP).
- Permite invertir dependencias: el resolver depende de abstracciones y los
  tests sustituyen backends sin red.
"""

from core.interfaces.release_lookup import ReleaseLookup
from core.interfaces.telemetry import UsageTelemetry
from core.interfaces.transport import ResponseWriter

__all__ = [
	"ReleaseLookup",
	"ResponseWriter",
	"UsageTelemetry",
]
