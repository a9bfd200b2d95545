"""Mapping of configuration log-level names to logging levels."""

from __future__ import annotations

import logging

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def parse_log_level(level: str) -> int:
    """Return the logging level for *level*, case-insensitively.

    Unknown or empty names fall back to ``logging.INFO``.
    """
    return _LEVELS.get(level.lower(), logging.INFO)