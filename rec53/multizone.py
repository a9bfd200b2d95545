"""A mock DNS server holding several zones, and builders for zone hierarchies."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

import dns.flags
import dns.message
import dns.name
import dns.opcode
import dns.rcode
import dns.rdataclass
import dns.rdatatype
import dns.rrset

from rec53.authority import DNSUDPServer, _split_addr
from rec53.records import a, make_soa, ns

_GLUE_TTL = 172800
_MOCK_ROOT_NS = "ns.mock-root."
_LOOPBACK = "127.0.0.1"


@dataclass
class MockReferral:
    """A delegation from a parent zone to *child_origin*.

    An empty *glue* list makes the referral glueless.
    """

    child_origin: str
    ns_records: list[dns.rrset.RRset] = field(default_factory=list)
    glue: list[dns.rrset.RRset] = field(default_factory=list)


@dataclass
class MockZone:
    """One zone served by :class:`MultiZoneMockServer`.

    *records* maps a record type to the records the zone owns. With *nsec*
    set, names without data get NXDOMAIN; with *tc* set, every reply from
    the zone is empty and carries the truncation flag.
    """

    origin: str
    records: dict[int, list[dns.rrset.RRset]] = field(default_factory=dict)
    referrals: list[MockReferral] = field(default_factory=list)
    nsec: bool = False
    tc: bool = False


def _name(text: str) -> dns.name.Name:
    return dns.name.from_text(text)


def _label_count(origin: str) -> int:
    return len(_name(origin).labels) - 1


class MultiZoneMockServer(DNSUDPServer):
    """A UDP server answering for many zones at once.

    A query is routed to the most specific zone containing its name. That
    zone refers the query to a child when one of its delegations covers the
    name, and otherwise answers authoritatively.
    """

    def __init__(self, zones: list[MockZone]) -> None:
        self._lock = threading.Lock()
        self._zones = sorted(zones, key=lambda zone: _label_count(zone.origin), reverse=True)
        self._request_count = 0
        self._questions: list[tuple[dns.name.Name, int]] = []
        super().__init__(self.handle)

    def addr(self) -> str:
        """Return the listening address as ``host:port``."""
        return super().addr()

    def port(self) -> str:
        """Return the listening port as text."""
        return str(_split_addr(self.addr())[1])

    def stop(self) -> None:
        """Stop serving and release the socket."""
        super().stop()

    def request_count(self) -> int:
        """Return the number of requests received so far."""
        with self._lock:
            return self._request_count

    def questions(self) -> list[tuple[dns.name.Name, int]]:
        """Return a copy of every ``(name, type)`` question received, in order."""
        with self._lock:
            return list(self._questions)

    def handle(self, request: dns.message.Message) -> dns.message.Message:
        """Route *request* to the most specific zone holding its name and answer it."""
        with self._lock:
            self._request_count += 1
            self._questions.extend((q.name, q.rdtype) for q in request.question)
            zones = list(self._zones)

        reply = dns.message.make_response(request)
        if not request.question:
            reply.set_rcode(dns.rcode.FORMERR)
            return reply

        qname = request.question[0].name
        zone = next((z for z in zones if qname.is_subdomain(_name(z.origin))), None)
        if zone is None:
            reply.set_rcode(dns.rcode.REFUSED)
            return reply
        return self._answer(request, reply, zone, qname)

    @staticmethod
    def _answer(
        request: dns.message.Message,
        reply: dns.message.Message,
        zone: MockZone,
        qname: dns.name.Name,
    ) -> dns.message.Message:
        if zone.tc:
            reply.flags |= dns.flags.TC
            reply.set_rcode(dns.rcode.NOERROR)
            return reply

        qtype = request.question[0].rdtype

        for referral in zone.referrals:
            if qname.is_subdomain(_name(referral.child_origin)):
                reply.flags &= ~dns.flags.AA
                reply.authority.extend(referral.ns_records)
                reply.additional.extend(referral.glue)
                return reply

        reply.flags |= dns.flags.AA
        origin = _name(zone.origin)

        reply.answer.extend(rr for rr in zone.records.get(qtype, []) if rr.name == qname)
        if reply.answer:
            return reply

        if qtype != dns.rdatatype.CNAME:
            for rr in zone.records.get(dns.rdatatype.CNAME, []):
                if rr.rdtype != dns.rdatatype.CNAME or rr.name != qname:
                    continue
                reply.answer.append(rr)
                target = rr[0].target
                if target.is_subdomain(origin):
                    reply.answer.extend(
                        arr
                        for arr in zone.records.get(dns.rdatatype.A, [])
                        if arr.rdtype == dns.rdatatype.A and arr.name == target
                    )
            if reply.answer:
                return reply

        reply.set_rcode(dns.rcode.NXDOMAIN if zone.nsec else dns.rcode.NOERROR)
        reply.authority = [make_soa(origin)]
        return reply


def _root_glue() -> dns.message.Message:
    glue = dns.message.Message()
    glue.set_opcode(dns.opcode.UPDATE)
    glue.find_rrset(
        glue.question,
        dns.name.root,
        dns.rdataclass.IN,
        dns.rdatatype.SOA,
        create=True,
        force_unique=True,
    )
    glue.authority = [ns(".", _MOCK_ROOT_NS, 0)]
    glue.additional = [a(_MOCK_ROOT_NS, _LOOPBACK, 0)]
    return glue


class MockDNSHierarchy:
    """Collects zones and starts them on one :class:`MultiZoneMockServer`."""

    def __init__(self) -> None:
        self.zones: list[MockZone] = []

    def add_zone(self, zone: MockZone) -> "MockDNSHierarchy":
        """Add *zone* and return the hierarchy, for chaining."""
        self.zones.append(zone)
        return self

    def build(self) -> tuple[MultiZoneMockServer, dns.message.Message]:
        """Start the server and return it with root glue pointing at the loopback."""
        return MultiZoneMockServer(self.zones), _root_glue()


def build_standard_hierarchy(
    tld: str, auth_zone: str, auth_records: dict[int, list[dns.rrset.RRset]]
) -> MockDNSHierarchy:
    """Build root, *tld* and *auth_zone* zones, each delegating to the next with glue."""
    tld_ns = f"ns1.{tld}"
    auth_ns = f"ns1.{auth_zone}"
    return (
        MockDNSHierarchy()
        .add_zone(
            MockZone(
                origin=".",
                referrals=[
                    MockReferral(
                        child_origin=tld,
                        ns_records=[ns(tld, tld_ns, _GLUE_TTL)],
                        glue=[a(tld_ns, _LOOPBACK, _GLUE_TTL)],
                    )
                ],
            )
        )
        .add_zone(
            MockZone(
                origin=tld,
                referrals=[
                    MockReferral(
                        child_origin=auth_zone,
                        ns_records=[ns(auth_zone, auth_ns, _GLUE_TTL)],
                        glue=[a(auth_ns, _LOOPBACK, _GLUE_TTL)],
                    )
                ],
            )
        )
        .add_zone(MockZone(origin=auth_zone, records=auth_records))
    )