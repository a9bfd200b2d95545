"""Configuration, log levels, shutdown helpers and mock authoritative DNS servers."""

__version__ = "0.1.0"

__all__ = ["authority", "config", "loglevel", "multizone", "records", "shutdown"]