"""Shared fixtures: protocol-conforming stubs for the resolver's backends."""

from __future__ import annotations

import dns.message
import dns.rdatatype
import pytest

from core.config import ResolverConfig
from core.domain.errors import ReleaseLookupError, TelemetryError
from core.domain.models import ProjectVersion


class StubLookup:
    """Release lookup backed by a dict; projects in `failing` raise."""

    def __init__(self, log: list[str], tags: dict[str, str], failing: set[str] | None = None) -> None:
        self.log = log
        self.tags = tags
        self.failing = failing or set()
        self.calls: list[tuple[str, str]] = []

    async def latest(self, owner: str, project: str) -> str | None:
        self.log.append("lookup")
        self.calls.append((owner, project))
        if project in self.failing:
            raise ReleaseLookupError(f"backend down for {project}")
        return self.tags.get(project)


class StubTelemetry:
    def __init__(self, log: list[str], fail: bool = False) -> None:
        self.log = log
        self.fail = fail
        self.events: list[tuple[str, ProjectVersion]] = []

    async def record(self, channel: str, payload: ProjectVersion) -> None:
        self.log.append("track")
        self.events.append((channel, payload))
        if self.fail:
            raise TelemetryError("ingestion API unavailable")


class RecordingWriter:
    def __init__(self, log: list[str], fail: bool = False) -> None:
        self.log = log
        self.fail = fail
        self.messages: list[dns.message.Message] = []

    def write_message(self, message: dns.message.Message) -> None:
        self.log.append("respond")
        if self.fail:
            raise OSError("connection refused")
        self.messages.append(message)


def make_query(name: str, rdtype: str = "PTR") -> dns.message.Message:
    return dns.message.make_query(name, dns.rdatatype.from_text(rdtype))


@pytest.fixture()
def call_log() -> list[str]:
    return []


@pytest.fixture()
def lookup(call_log: list[str]) -> StubLookup:
    return StubLookup(call_log, {"widget": "3.1.4", "registrator": "v7"}, failing={"ghost"})


@pytest.fixture()
def telemetry(call_log: list[str]) -> StubTelemetry:
    return StubTelemetry(call_log)


@pytest.fixture()
def writer(call_log: list[str]) -> RecordingWriter:
    return RecordingWriter(call_log)


@pytest.fixture()
def resolver_config() -> ResolverConfig:
    return ResolverConfig(owner="gliderlabs", lookup_timeout=1.0, track_timeout=1.0)
