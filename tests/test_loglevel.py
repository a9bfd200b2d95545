import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from rec53.loglevel import parse_log_level


@pytest.mark.parametrize(
    "text, expected",
    [
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
        ("unknown", logging.INFO),
        ("", logging.INFO),
        ("DEBUG", logging.DEBUG),
        ("INFO", logging.INFO),
        ("WARN", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("DeBuG", logging.DEBUG),
    ],
)
def test_parse_log_level(text, expected):
    assert parse_log_level(text) == expected


NAMES = ["debug", "info", "warn", "error", "unknown"]
EXPECTED = [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.INFO]


def _parse_all(_):
    return [parse_log_level(name) for name in NAMES]


def test_parse_log_level_concurrent_use():
    with ThreadPoolExecutor(max_workers=10) as pool:
        results = list(pool.map(_parse_all, range(10)))

    assert results == [EXPECTED] * 10
    assert [parse_log_level(name) for name in NAMES] == EXPECTED