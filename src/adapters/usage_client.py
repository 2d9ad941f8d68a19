"""Cliente del protocolo usage-v1.

Dos operaciones síncronas:
- `request_latest`: pregunta por `latest.<project>.usage-v1.` (PTR) y
  decodifica el destino del primer PTR de la respuesta.
- `send`: reporte de uso fire-and-forget; escribe una consulta y no lee.

Ambas usan un timeout fijo por defecto (`DNS_TIMEOUT`).
"""

from __future__ import annotations

import socket

import dns.exception
import dns.message
import dns.query
import dns.rdatatype

from core.domain.errors import NoAnswer, UsageClientError
from core.domain.models import ProjectVersion
from core.domain.naming import decode, encode, latest_alias
from core.services.resolver import name_from_text, name_to_text

DNS_HOST = "usage.gliderlabs.com"
DNS_PORT = 53
DNS_TIMEOUT = 2.0


def _resolve_server(host: str, port: int) -> tuple[socket.AddressFamily, str]:
    """`dns.query` necesita una IP; resolvemos el host una vez por llamada."""

    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except OSError as exc:
        raise UsageClientError(f"cannot resolve {host}: {exc}") from exc
    family, _, _, _, sockaddr = infos[0]
    return family, sockaddr[0]


def request_latest(
    pv: ProjectVersion,
    *,
    host: str = DNS_HOST,
    port: int = DNS_PORT,
    timeout: float = DNS_TIMEOUT,
) -> ProjectVersion:
    """Pregunta al servidor cuál es la última versión de `pv.project`.

    Raises:
        NoAnswer: la respuesta no trae ningún registro PTR.
        UsageClientError: timeout, fallo de red o de resolución del host.
        DecodeError: el PTR apunta a un nombre que no es `usage-v1`.
        ValueError: el nombre a consultar no es ASCII plano.
    """

    _, address = _resolve_server(host, port)
    query = dns.message.make_query(name_from_text(latest_alias(pv.project)), dns.rdatatype.PTR)
    try:
        response = dns.query.udp(query, address, timeout=timeout, port=port)
    except (dns.exception.DNSException, OSError) as exc:
        raise UsageClientError(f"query to {host}:{port} failed: {exc!r}") from exc

    for rrset in response.answer:
        if rrset.rdtype == dns.rdatatype.PTR:
            return decode(name_to_text(rrset[0].target))
    raise NoAnswer(f"no PTR record in answer from {host}:{port}")


def send(
    pv: ProjectVersion,
    *,
    host: str = DNS_HOST,
    port: int = DNS_PORT,
    timeout: float = DNS_TIMEOUT,
) -> None:
    """Reporta el uso de `pv` sin esperar respuesta.

    El socket tiene el mismo timeout para lectura y escritura y se cierra en
    todos los caminos de salida.
    """

    family, address = _resolve_server(host, port)
    query = dns.message.make_query(name_from_text(encode(pv)), dns.rdatatype.PTR)
    try:
        with socket.socket(family, socket.SOCK_DGRAM) as sock:
            sock.settimeout(timeout)
            sock.connect((address, port))
            sock.send(query.to_wire())
    except OSError as exc:
        raise UsageClientError(f"report to {host}:{port} failed: {exc}") from exc
