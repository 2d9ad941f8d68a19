"""Usage resolver: one DNS query in, zero or one DNS response out.

This module holds the request-handling sequence of the protocol. Each call to
`UsageResolver.serve` is independent: no state is shared between queries, so
the transport may run as many invocations concurrently as it likes.

Sequence:
- decode the first question name (`<version>.<project>.usage-v1.`)
- look up the latest release of `project`
- record the *requested* pair as a usage event (best-effort)
- answer with a PTR and a TXT record owned by `latest.<project>.usage-v1.`

Failures before the answer is built end the exchange silently: the client sees
a timeout. A telemetry failure never prevents the answer.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

import dns.exception
import dns.message
import dns.name
import dns.rdataclass
import dns.rdatatype
import dns.rdtypes.ANY.PTR
import dns.rdtypes.ANY.TXT
import dns.rrset

from core.config import ResolverConfig
from core.domain.errors import DecodeError, ReleaseLookupError
from core.domain.models import ProjectVersion
from core.domain.naming import decode, encode, latest_alias
from core.interfaces.release_lookup import ReleaseLookup
from core.interfaces.telemetry import UsageTelemetry
from core.interfaces.transport import ResponseWriter

logger = logging.getLogger(__name__)

RECORD_TTL = 0

_UNSAFE_LABEL_BYTES = (b".", b"\\")


class Resolution(str, Enum):
    """Outcome of a single resolver invocation."""

    ANSWERED = "answered"
    MALFORMED = "malformed"
    NOT_FOUND = "not_found"
    UPSTREAM_ERROR = "upstream_error"
    WRITE_FAILED = "write_failed"


def name_from_text(text: str) -> dns.name.Name:
    """Builds a wire name from plain ASCII text, without IDNA or escapes.

    Raises `ValueError` for non-ASCII text or backslashes.
    """

    if "\\" in text:
        raise ValueError(f"backslash in {text!r}")
    return dns.name.from_text(text.encode("ascii"))


def name_to_text(name: dns.name.Name) -> str:
    """Plain text of an absolute name, one label per dot.

    Raises `ValueError` when a label holds a literal dot, a backslash or
    non-ASCII bytes: such labels have no unambiguous plain-text form.
    """

    for label in name.labels:
        if any(unsafe in label for unsafe in _UNSAFE_LABEL_BYTES):
            raise ValueError(f"ambiguous label {label!r}")
    return ".".join(label.decode("ascii") for label in name.labels) or "."


def ptr_record(latest: ProjectVersion) -> dns.rrset.RRset:
    owner = name_from_text(latest_alias(latest.project))
    rdata = dns.rdtypes.ANY.PTR.PTR(
        dns.rdataclass.IN,
        dns.rdatatype.PTR,
        name_from_text(encode(latest)),
    )
    return dns.rrset.from_rdata(owner, RECORD_TTL, rdata)


def txt_record(latest: ProjectVersion) -> dns.rrset.RRset:
    owner = name_from_text(latest_alias(latest.project))
    rdata = dns.rdtypes.ANY.TXT.TXT(
        dns.rdataclass.IN,
        dns.rdatatype.TXT,
        [f"project={latest.project}", f"version={latest.version}"],
    )
    return dns.rrset.from_rdata(owner, RECORD_TTL, rdata)


def build_answer(latest: ProjectVersion) -> list[dns.rrset.RRset]:
    """Answer section for a resolved project: PTR first, then TXT."""

    return [ptr_record(latest), txt_record(latest)]


class UsageResolver:
    """Turns inbound usage queries into answers about the latest release.

    Backends are injected as Protocol-typed collaborators and configuration
    arrives as an immutable `ResolverConfig`, so a resolver can be built in
    tests without touching the network or the environment.
    """

    def __init__(
        self,
        lookup: ReleaseLookup,
        telemetry: UsageTelemetry,
        config: ResolverConfig,
    ) -> None:
        self._lookup = lookup
        self._telemetry = telemetry
        self._config = config

    async def serve(self, writer: ResponseWriter, query: dns.message.Message) -> Resolution:
        if not query.question:
            logger.info("Dropping query %s: no question section", query.id)
            return Resolution.MALFORMED

        try:
            name = name_to_text(query.question[0].name)
            requested = decode(name)
        except (DecodeError, ValueError) as exc:
            logger.info("Dropping malformed query: %s", exc)
            return Resolution.MALFORMED

        try:
            tag = await asyncio.wait_for(
                self._lookup.latest(self._config.owner, requested.project),
                timeout=self._config.lookup_timeout,
            )
        except (ReleaseLookupError, asyncio.TimeoutError) as exc:
            logger.warning("Release lookup failed for %s: %r", requested.project, exc)
            return Resolution.UPSTREAM_ERROR

        if tag is None:
            # TODO answer NXDOMAIN once clients can tell it apart from a bad name.
            logger.info("No release found for %s/%s", self._config.owner, requested.project)
            return Resolution.NOT_FOUND

        try:
            latest = ProjectVersion(project=requested.project, version=tag)
            answer = build_answer(latest)
        except (ValueError, dns.exception.DNSException) as exc:
            logger.warning("Unusable release tag %r for %s: %s", tag, requested.project, exc)
            return Resolution.UPSTREAM_ERROR

        # Only projects that resolved are tracked.
        await self._track(requested)

        response = dns.message.make_response(query)
        response.answer.extend(answer)
        try:
            writer.write_message(response)
        except (OSError, dns.exception.DNSException) as exc:
            logger.error("Failed to write response for %s: %s", name, exc)
            return Resolution.WRITE_FAILED

        logger.debug("Answered %s with %s", name, latest.version)
        return Resolution.ANSWERED

    async def _track(self, requested: ProjectVersion) -> None:
        try:
            await asyncio.wait_for(
                self._telemetry.record(self._config.channel, requested),
                timeout=self._config.track_timeout,
            )
        except Exception as exc:
            logger.warning("Usage event for %s not recorded: %r", encode(requested), exc)
