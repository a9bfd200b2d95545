"""Loading and validation of the resolver's YAML configuration."""

from __future__ import annotations

import ipaddress
import os
import re
import socket
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Union

import yaml

MIN_TIMEOUT = 0.1
"""Smallest accepted non-zero timeout, in seconds."""

_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_COMPONENT = re.compile(r"([0-9]*(?:\.[0-9]*)?)(ns|us|\u00b5s|\u03bcs|ms|s|m|h)")
_MAX_NANOSECONDS = 2**63 - 1
_ATOI = re.compile(r"[+-]?[0-9]+")


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded or is invalid."""


@dataclass
class DNSConfig:
    """Settings of the DNS listener. Durations are in seconds."""

    listen: str = ""
    metric: str = ""
    log_level: str = ""
    upstream_timeout: float = 0.0


@dataclass
class WarmupConfig:
    """Settings of the name-server warmup run at startup.

    Durations are in seconds; a concurrency of 0 leaves the choice to the server.
    """

    enabled: bool = False
    timeout: float = 0.0
    duration: float = 0.0
    concurrency: int = 0
    tlds: list[str] = field(default_factory=list)


@dataclass
class Config:
    """The whole application configuration."""

    dns: DNSConfig = field(default_factory=DNSConfig)
    warmup: WarmupConfig = field(default_factory=WarmupConfig)


def parse_duration(text: str) -> float:
    """Parse a duration such as ``"1h2m"``, ``"1.5s"`` or ``"100ms"`` into seconds."""
    if not isinstance(text, str):
        raise ConfigError(f"invalid duration {text!r}")
    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return 0.0
    if not rest:
        raise ConfigError(f"invalid duration {text!r}")

    total = Decimal(0)
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        if match is None or match.group(1) in ("", "."):
            raise ConfigError(f"invalid duration {text!r}")
        total += Decimal(match.group(1)) * _NANOSECONDS[match.group(2)]
        pos = match.end()

    nanoseconds = int(total)
    if nanoseconds > _MAX_NANOSECONDS:
        raise ConfigError(f"invalid duration {text!r}")
    return sign * nanoseconds / 1e9


def _format_duration(seconds: float) -> str:
    """Render a duration in seconds the way duration strings are written."""
    ns = round(seconds * 1e9)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    def trimmed(value: int, unit: int) -> str:
        text = format(Decimal(value) / Decimal(unit), "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text

    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{trimmed(ns, 1_000)}\u00b5s"
    if ns < 1_000_000_000:
        return f"{sign}{trimmed(ns, 1_000_000)}ms"
    hours, rem = divmod(ns, _NANOSECONDS["h"])
    minutes, rem = divmod(rem, _NANOSECONDS["m"])
    secs = trimmed(rem, _NANOSECONDS["s"])
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def _parse_error(message: str) -> ConfigError:
    return ConfigError(f"failed to parse config: {message}")


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _parse_error(f"{key}: expected a mapping")
    return value


def _string(value: Any, key: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise _parse_error(f"{key}: expected a string")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _boolean(value: Any, key: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise _parse_error(f"{key}: expected a boolean")
    return value


def _integer(value: Any, key: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise _parse_error(f"{key}: expected an integer")
    return value


def _duration(value: Any, key: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise _parse_error(f"{key}: expected a duration")
    if isinstance(value, int):
        return value / 1e9
    if isinstance(value, str):
        try:
            return parse_duration(value)
        except ConfigError as exc:
            raise _parse_error(f"{key}: {exc}") from exc
    raise _parse_error(f"{key}: expected a duration")


def _string_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _parse_error(f"{key}: expected a list")
    return [_string(item, key) for item in value]


def _build_config(data: Any) -> Config:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise _parse_error("expected a mapping at the top level")
    dns = _section(data, "dns")
    warmup = _section(data, "warmup")
    return Config(
        dns=DNSConfig(
            listen=_string(dns.get("listen"), "dns.listen"),
            metric=_string(dns.get("metric"), "dns.metric"),
            log_level=_string(dns.get("log_level"), "dns.log_level"),
            upstream_timeout=_duration(dns.get("upstream_timeout"), "dns.upstream_timeout"),
        ),
        warmup=WarmupConfig(
            enabled=_boolean(warmup.get("enabled"), "warmup.enabled"),
            timeout=_duration(warmup.get("timeout"), "warmup.timeout"),
            duration=_duration(warmup.get("duration"), "warmup.duration"),
            concurrency=_integer(warmup.get("concurrency"), "warmup.concurrency"),
            tlds=_string_list(warmup.get("tlds"), "warmup.tlds"),
        ),
    )


def load_config(path: Union[str, "os.PathLike[str]", None]) -> Config:
    """Read and parse the YAML configuration file at *path*."""
    if not path:
        raise ConfigError(
            "Config file required.\nGenerate default config with:\n"
            "  ./generate-config.sh\n"
            "  ./rec53 --config ./config.yaml"
        )
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Config file not found: {os.fspath(path)}\n"
            "Generate it with:\n"
            "  ./generate-config.sh\n"
            f"  ./rec53 --config {os.fspath(path)}"
        ) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise _parse_error(str(exc)) from exc
    return _build_config(data)


def _split_host_port(address: str) -> tuple[str, str]:
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise ValueError("missing ']' in address")
        rest = address[end + 1 :]
        if not rest or rest[0] != ":":
            raise ValueError("missing port in address")
        if ":" in rest[1:]:
            raise ValueError("too many colons in address")
        host, port = address[1:end], rest[1:]
        if "[" in host:
            raise ValueError("unexpected '[' in address")
    else:
        index = address.rfind(":")
        if index < 0:
            raise ValueError("missing port in address")
        host, port = address[:index], address[index + 1 :]
        if ":" in host:
            raise ValueError("too many colons in address")
        if "[" in host:
            raise ValueError("unexpected '[' in address")
    if "]" in port or "[" in port:
        raise ValueError("unexpected bracket in address")
    return host, port


def _resolve_tcp_address(address: str) -> None:
    """Check that *address* is a resolvable ``host:port``; raise ValueError if not."""
    host, port = _split_host_port(address)
    if port and port.isascii() and port.isdigit():
        if int(port) > 65535:
            raise ValueError("invalid port")
    elif port:
        try:
            socket.getservbyname(port, "tcp")
        except OSError as exc:
            raise ValueError("unknown port") from exc
    if not host:
        return
    try:
        ipaddress.ip_address(host.split("%", 1)[0])
        return
    except ValueError:
        pass
    try:
        socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except OSError as exc:
        raise ValueError(f"lookup {host}: no such host") from exc


def validate_config(cfg: Config | None) -> Config:
    """Check the fields the server needs; return *cfg* or raise ConfigError."""
    if cfg is None:
        raise ConfigError("configuration is nil")

    if not cfg.dns.listen.strip():
        raise ConfigError("dns.listen address is required and cannot be empty")
    if not cfg.dns.metric.strip():
        raise ConfigError("dns.metric address is required and cannot be empty")

    try:
        _resolve_tcp_address(cfg.dns.listen)
    except ValueError as exc:
        raise ConfigError(f"invalid dns.listen address '{cfg.dns.listen}': {exc}") from exc

    metric = cfg.dns.metric.strip()
    if metric.startswith(":"):
        port_text = metric[1:]
        if not _ATOI.fullmatch(port_text):
            raise ConfigError(
                f"invalid dns.metric port '{cfg.dns.metric}': "
                f"parsing {port_text!r}: invalid syntax"
            )
        port = int(port_text)
        if not 1 <= port <= 65535:
            raise ConfigError(f"dns.metric port must be between 1 and 65535, got {port}")
    else:
        try:
            _resolve_tcp_address(cfg.dns.metric)
        except ValueError as exc:
            raise ConfigError(
                f"invalid dns.metric address '{cfg.dns.metric}': {exc}"
            ) from exc

    if 0 < cfg.warmup.timeout < MIN_TIMEOUT:
        raise ConfigError(
            "warmup.timeout must be at least 100ms, got "
            f"{_format_duration(cfg.warmup.timeout)}"
        )
    if 0 < cfg.dns.upstream_timeout < MIN_TIMEOUT:
        raise ConfigError(
            "dns.upstream_timeout must be at least 100ms, got "
            f"{_format_duration(cfg.dns.upstream_timeout)}"
        )
    return cfg