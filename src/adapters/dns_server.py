"""Servidor DNS sobre UDP (asyncio).

Por qué en adapters:
- Es I/O puro: recibe datagramas, los parsea con dnspython y delega cada
  consulta en `UsageResolver` dentro de su propia task.
- El resolver nunca ve sockets; solo un `ResponseWriter`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import dns.exception
import dns.flags
import dns.message

from adapters.github_releases import GitHubReleaseLookup
from adapters.keen_telemetry import KeenBatchTelemetry, KeenTelemetry
from core.config import AppSettings, ResolverConfig
from core.services.resolver import UsageResolver

logger = logging.getLogger(__name__)

Address = tuple[Any, ...]


class DatagramResponseWriter:
    """`ResponseWriter` que responde al remitente de un datagrama."""

    def __init__(self, transport: asyncio.DatagramTransport, addr: Address) -> None:
        self._transport = transport
        self._addr = addr

    def write_message(self, message: dns.message.Message) -> None:
        self._transport.sendto(message.to_wire(), self._addr)


class UsageDNSProtocol(asyncio.DatagramProtocol):
    """Una task por datagrama; las consultas no comparten estado."""

    def __init__(self, resolver: UsageResolver) -> None:
        self._resolver = resolver
        self._transport: asyncio.DatagramTransport | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]
        logger.info("Listening on %s", transport.get_extra_info("sockname"))

    def datagram_received(self, data: bytes, addr: Address) -> None:
        try:
            query = dns.message.from_wire(data)
        except dns.exception.DNSException as exc:
            logger.debug("Ignoring unparseable datagram from %s: %s", addr, exc)
            return
        if query.flags & dns.flags.QR:
            logger.debug("Ignoring response datagram from %s", addr)
            return
        if self._transport is None:
            raise RuntimeError("datagram received before connection_made")

        writer = DatagramResponseWriter(self._transport, addr)
        task = asyncio.get_running_loop().create_task(self._handle(writer, query, addr))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle(
        self,
        writer: DatagramResponseWriter,
        query: dns.message.Message,
        addr: Address,
    ) -> None:
        try:
            outcome = await self._resolver.serve(writer, query)
        except Exception:
            logger.exception("Unhandled error serving query from %s", addr)
            return
        logger.debug("Query %s from %s: %s", query.id, addr, outcome.value)

    def error_received(self, exc: Exception) -> None:
        logger.warning("UDP transport error: %s", exc)

    async def drain(self) -> None:
        """Espera a las consultas en curso (usado al apagar)."""

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


async def serve_udp(
    resolver: UsageResolver,
    host: str,
    port: int,
    *,
    ready: asyncio.Future[Address] | None = None,
) -> None:
    """Sirve `resolver` en `host:port` hasta que la task sea cancelada.

    `ready` recibe la dirección realmente enlazada (útil con `port=0`).
    """

    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: UsageDNSProtocol(resolver),
        local_addr=(host, port),
    )
    try:
        if ready is not None:
            ready.set_result(transport.get_extra_info("sockname"))
        await asyncio.Event().wait()
    finally:
        await protocol.drain()
        transport.close()


async def run_server(settings: AppSettings) -> None:
    """Arma los adaptadores reales (GitHub + Keen por lotes) y sirve."""

    lookup = GitHubReleaseLookup(settings)
    keen = KeenTelemetry(settings)
    async with KeenBatchTelemetry(keen, settings.flush_interval_seconds) as telemetry:
        resolver = UsageResolver(lookup, telemetry, ResolverConfig.from_settings(settings))
        logger.info(
            "Resolving releases of github.com/%s, usage events to Keen project %s",
            settings.github_owner,
            settings.keen_project,
        )
        await serve_udp(resolver, settings.host, settings.port)
