from __future__ import annotations

import asyncio
import contextlib

import dns.exception
import dns.message
import dns.query
import dns.rdatatype
import pytest

from conftest import make_query
from adapters.dns_server import UsageDNSProtocol, serve_udp
from adapters.usage_client import request_latest, send
from core.domain.errors import UsageClientError
from core.domain.models import ProjectVersion
from core.services.resolver import UsageResolver


@contextlib.asynccontextmanager
async def running_server(resolver: UsageResolver):
    ready: asyncio.Future = asyncio.get_running_loop().create_future()
    task = asyncio.create_task(serve_udp(resolver, "127.0.0.1", 0, ready=ready))
    try:
        host, port = await asyncio.wait_for(ready, timeout=5)
        yield port
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


@pytest.mark.asyncio
async def test_client_gets_latest_over_udp(lookup, telemetry, resolver_config):
    resolver = UsageResolver(lookup, telemetry, resolver_config)

    async with running_server(resolver) as port:
        latest = await asyncio.to_thread(
            request_latest,
            ProjectVersion(project="widget", version="2.0.0"),
            host="127.0.0.1",
            port=port,
        )

    assert latest == ProjectVersion(project="widget", version="3.1.4")
    assert telemetry.events == [("usage", ProjectVersion(project="widget", version="latest"))]


@pytest.mark.asyncio
async def test_reported_usage_is_tracked(lookup, telemetry, resolver_config):
    resolver = UsageResolver(lookup, telemetry, resolver_config)

    async with running_server(resolver) as port:
        await asyncio.to_thread(
            send,
            ProjectVersion(project="registrator", version="v6"),
            host="127.0.0.1",
            port=port,
        )
        for _ in range(200):
            if telemetry.events:
                break
            await asyncio.sleep(0.01)

    assert telemetry.events == [("usage", ProjectVersion(project="registrator", version="v6"))]


@pytest.mark.asyncio
async def test_malformed_query_gets_no_response(lookup, telemetry, resolver_config):
    resolver = UsageResolver(lookup, telemetry, resolver_config)
    query = dns.message.make_query("www.example.com.", dns.rdatatype.A)

    async with running_server(resolver) as port:
        with pytest.raises(dns.exception.Timeout):
            await asyncio.to_thread(dns.query.udp, query, "127.0.0.1", timeout=0.3, port=port)

    assert lookup.calls == []


@pytest.mark.asyncio
async def test_unknown_project_times_out_for_client(lookup, telemetry, resolver_config):
    resolver = UsageResolver(lookup, telemetry, resolver_config)

    async with running_server(resolver) as port:
        with pytest.raises(UsageClientError):
            await asyncio.to_thread(
                request_latest,
                ProjectVersion(project="ghost", version="1.0"),
                host="127.0.0.1",
                port=port,
                timeout=0.3,
            )

    assert telemetry.events == []


class FakeDatagramTransport:
    def __init__(self) -> None:
        self.sent: list[tuple[bytes, tuple]] = []

    def sendto(self, data: bytes, addr: tuple) -> None:
        self.sent.append((data, addr))

    def get_extra_info(self, name: str, default=None):
        return ("127.0.0.1", 53) if name == "sockname" else default


@pytest.mark.asyncio
async def test_response_datagrams_are_ignored(lookup, telemetry, resolver_config):
    protocol = UsageDNSProtocol(UsageResolver(lookup, telemetry, resolver_config))
    transport = FakeDatagramTransport()
    protocol.connection_made(transport)
    reply = dns.message.make_response(make_query("2.0.0.widget.usage-v1."))

    protocol.datagram_received(reply.to_wire(), ("127.0.0.1", 5353))
    await protocol.drain()

    assert lookup.calls == []
    assert transport.sent == []


@pytest.mark.asyncio
async def test_query_datagram_is_answered_to_sender(lookup, telemetry, resolver_config):
    protocol = UsageDNSProtocol(UsageResolver(lookup, telemetry, resolver_config))
    transport = FakeDatagramTransport()
    protocol.connection_made(transport)
    query = make_query("2.0.0.widget.usage-v1.")

    protocol.datagram_received(query.to_wire(), ("127.0.0.1", 5353))
    await protocol.drain()

    assert len(transport.sent) == 1
    data, addr = transport.sent[0]
    assert addr == ("127.0.0.1", 5353)
    assert dns.message.from_wire(data).id == query.id


@pytest.mark.asyncio
async def test_datagram_before_connection_made_is_an_error(lookup, telemetry, resolver_config):
    protocol = UsageDNSProtocol(UsageResolver(lookup, telemetry, resolver_config))
    query = make_query("2.0.0.widget.usage-v1.")

    with pytest.raises(RuntimeError):
        protocol.datagram_received(query.to_wire(), ("127.0.0.1", 5353))
    assert lookup.calls == []
