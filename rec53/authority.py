"""Small UDP DNS servers used to stand in for authoritative name servers."""

from __future__ import annotations

import logging
import queue
import socket
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import dns.exception
import dns.message
import dns.name
import dns.query
import dns.rcode
import dns.rdatatype
import dns.rrset

from rec53.records import zone_soa

logger = logging.getLogger("rec53")

Handler = Callable[[dns.message.Message], Optional[dns.message.Message]]
"""A callable that answers a request, or returns None to stay silent."""

_POLL_INTERVAL = 0.05
_MAX_DATAGRAM = 65535
_AUTHORITY_SOA_TTL = 3600


def _split_addr(addr: str) -> tuple[str, int]:
    host, _, port = addr.rpartition(":")
    return host, int(port)


class DNSUDPServer:
    """A UDP DNS server on a random loopback port, answering through *handler*.

    The socket is bound before the constructor returns, so :meth:`addr` is
    usable immediately. Requests are served in a background thread.
    """

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self._stopping = threading.Event()
        self._errors: "queue.Queue[BaseException]" = queue.Queue()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.settimeout(_POLL_INTERVAL)
        host, port = self._sock.getsockname()[:2]
        self._addr = f"{host}:{port}"
        self._thread = threading.Thread(target=self._serve, name="dns-udp", daemon=True)
        self._thread.start()

    def addr(self) -> str:
        """Return the listening address as ``host:port``."""
        return self._addr

    def stop(self) -> None:
        """Stop serving and release the socket. Safe to call more than once."""
        if self._stopping.is_set():
            return
        self._stopping.set()
        self._thread.join()
        self._sock.close()

    def __enter__(self) -> "DNSUDPServer":
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    def _serve(self) -> None:
        while not self._stopping.is_set():
            try:
                data, peer = self._sock.recvfrom(_MAX_DATAGRAM)
            except socket.timeout:
                continue
            except OSError as exc:
                if not self._stopping.is_set():
                    logger.debug("dns server stopped: %s", exc)
                    self._errors.put(exc)
                return
            self._respond(data, peer)

    def _respond(self, data: bytes, peer) -> None:
        try:
            request = dns.message.from_wire(data)
        except dns.exception.DNSException as exc:
            logger.debug("dropping malformed request from %s: %s", peer, exc)
            return
        try:
            reply = self._handler(request)
            if reply is not None:
                self._sock.sendto(reply.to_wire(), peer)
        except Exception:
            logger.exception("dns handler failed")


@dataclass
class Zone:
    """A zone served by :class:`MockAuthorityServer`.

    *records* maps a record type to the records of that type. With *nsec*
    set, names without data get NXDOMAIN; with *referral* set, every query
    inside the zone is answered with a referral.
    """

    origin: str
    records: dict[int, list[dns.rrset.RRset]] = field(default_factory=dict)
    nsec: bool = False
    referral: bool = False


class MockAuthorityServer(DNSUDPServer):
    """An authoritative server for a single, replaceable zone."""

    def __init__(self, zone: Optional[Zone]) -> None:
        self._lock = threading.Lock()
        self._zone = zone
        self._request_count = 0
        self._questions: list[tuple[dns.name.Name, int]] = []
        super().__init__(self.handle)

    def addr(self) -> str:
        """Return the listening address as ``host:port``."""
        return super().addr()

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

    def set_zone(self, zone: Optional[Zone]) -> None:
        """Replace the zone being served."""
        with self._lock:
            self._zone = zone

    def handle(self, request: dns.message.Message) -> dns.message.Message:
        """Build the answer to *request* from the current zone."""
        with self._lock:
            self._request_count += 1
            self._questions.extend((q.name, q.rdtype) for q in request.question)
            zone = self._zone

        reply = dns.message.make_response(request)
        if not request.question:
            reply.set_rcode(dns.rcode.FORMERR)
            return reply
        if zone is None:
            reply.set_rcode(dns.rcode.NXDOMAIN)
            return reply

        qname = request.question[0].name
        qtype = request.question[0].rdtype
        origin = dns.name.from_text(zone.origin)

        if not qname.is_subdomain(origin) or zone.referral:
            self._fill_referral(reply, zone)
            return reply

        reply.answer.extend(rr for rr in zone.records.get(qtype, []) if rr.name == qname)
        if reply.answer:
            return reply

        for rr in zone.records.get(dns.rdatatype.CNAME, []):
            if rr.rdtype != dns.rdatatype.CNAME or rr.name != qname:
                continue
            reply.answer.append(rr)
            target = rr[0].target
            reply.answer.extend(
                arr
                for arr in zone.records.get(dns.rdatatype.A, [])
                if arr.rdtype == dns.rdatatype.A and arr.name == target
            )
        if reply.answer:
            return reply

        if zone.nsec:
            reply.set_rcode(dns.rcode.NXDOMAIN)
        else:
            reply.authority = [zone_soa(origin, _AUTHORITY_SOA_TTL)]
        return reply

    @staticmethod
    def _fill_referral(reply: dns.message.Message, zone: Zone) -> None:
        reply.authority.extend(zone.records.get(dns.rdatatype.NS, []))
        targets = {
            rdata.target
            for rrset in reply.authority
            if rrset.rdtype == dns.rdatatype.NS
            for rdata in rrset
        }
        reply.additional.extend(
            rr
            for rr in zone.records.get(dns.rdatatype.A, [])
            if rr.rdtype == dns.rdatatype.A and rr.name in targets
        )


class LocalResolver(DNSUDPServer):
    """A server wrapping an arbitrary handler, with a client to query it."""

    def __init__(self, handler: Handler) -> None:
        super().__init__(handler)

    def addr(self) -> str:
        """Return the listening address as ``host:port``."""
        return super().addr()

    def stop(self) -> None:
        """Stop serving and release the socket."""
        super().stop()

    def query(
        self,
        qname: Union[str, dns.name.Name],
        qtype: Union[str, int],
        timeout: float = 5.0,
    ) -> dns.message.Message:
        """Send a recursion-desired query to this server and return the reply."""
        if isinstance(qname, str):
            qname = dns.name.from_text(qname)
        message = dns.message.make_query(qname, qtype)
        host, port = _split_addr(self.addr())
        return dns.query.udp(message, host, port=port, timeout=timeout)

    def wait_for_error(self, timeout: float) -> Optional[BaseException]:
        """Return the error that stopped the server, or None after *timeout* seconds."""
        try:
            return self._errors.get(timeout=timeout)
        except queue.Empty:
            return None