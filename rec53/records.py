"""Builders for single DNS resource records.

Each builder returns a :class:`dns.rrset.RRset` holding exactly one record.
Owner names and target names are made fully qualified.
"""

from __future__ import annotations

from typing import Union

import dns.exception
import dns.name
import dns.rdataclass
import dns.rdatatype
import dns.rrset
from dns.rdtypes.ANY.CNAME import CNAME
from dns.rdtypes.ANY.MX import MX
from dns.rdtypes.ANY.NS import NS
from dns.rdtypes.ANY.SOA import SOA
from dns.rdtypes.ANY.TXT import TXT
from dns.rdtypes.IN.A import A
from dns.rdtypes.IN.AAAA import AAAA

NameLike = Union[str, dns.name.Name]

SOA_SERIAL = 2024010101
SOA_REFRESH = 3600
SOA_RETRY = 1800
SOA_EXPIRE = 86400
SOA_MINIMUM = 300
NEGATIVE_SOA_TTL = 300

_IN = dns.rdataclass.IN


def _fqdn(name: NameLike) -> dns.name.Name:
    if isinstance(name, dns.name.Name):
        return name if name.is_absolute() else name.concatenate(dns.name.root)
    return dns.name.from_text(name)


def _record(name: NameLike, ttl: int, rdata) -> dns.rrset.RRset:
    return dns.rrset.from_rdata(_fqdn(name), ttl, rdata)


def _address(rdtype, ip: str):
    try:
        if rdtype == dns.rdatatype.A:
            return A(_IN, rdtype, ip)
        return AAAA(_IN, rdtype, ip)
    except (dns.exception.DNSException, ValueError) as exc:
        raise ValueError(f"invalid IP address {ip!r}") from exc


def a(name: NameLike, ip: str, ttl: int) -> dns.rrset.RRset:
    """Build an A record."""
    return _record(name, ttl, _address(dns.rdatatype.A, ip))


def aaaa(name: NameLike, ip: str, ttl: int) -> dns.rrset.RRset:
    """Build an AAAA record."""
    return _record(name, ttl, _address(dns.rdatatype.AAAA, ip))


def cname(name: NameLike, target: NameLike, ttl: int) -> dns.rrset.RRset:
    """Build a CNAME record."""
    return _record(name, ttl, CNAME(_IN, dns.rdatatype.CNAME, _fqdn(target)))


def mx(name: NameLike, mx: NameLike, preference: int, ttl: int) -> dns.rrset.RRset:
    """Build an MX record."""
    return _record(name, ttl, MX(_IN, dns.rdatatype.MX, preference, _fqdn(mx)))


def txt(name: NameLike, text: str, ttl: int) -> dns.rrset.RRset:
    """Build a TXT record holding a single string."""
    return _record(name, ttl, TXT(_IN, dns.rdatatype.TXT, (text,)))


def ns(domain: NameLike, nameserver: NameLike, ttl: int) -> dns.rrset.RRset:
    """Build an NS record."""
    return _record(domain, ttl, NS(_IN, dns.rdatatype.NS, _fqdn(nameserver)))


def soa(domain: NameLike, nameserver: NameLike, mbox: NameLike, ttl: int) -> dns.rrset.RRset:
    """Build an SOA record with the fixed serial and timers used by the mocks."""
    rdata = SOA(
        _IN,
        dns.rdatatype.SOA,
        _fqdn(nameserver),
        _fqdn(mbox),
        SOA_SERIAL,
        SOA_REFRESH,
        SOA_RETRY,
        SOA_EXPIRE,
        SOA_MINIMUM,
    )
    return _record(domain, ttl, rdata)


def zone_soa(origin: NameLike, ttl: int) -> dns.rrset.RRset:
    """Build the SOA of *origin*, naming ``ns1.<origin>`` and ``admin.<origin>``."""
    origin_name = _fqdn(origin)
    return soa(
        origin_name,
        dns.name.from_text("ns1", origin=origin_name),
        dns.name.from_text("admin", origin=origin_name),
        ttl,
    )


def make_soa(origin: NameLike) -> dns.rrset.RRset:
    """Build the SOA record placed in the authority section of negative answers."""
    return zone_soa(origin, NEGATIVE_SOA_TTL)