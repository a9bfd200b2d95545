"""Stopping running components and waiting for a reason to stop."""

from __future__ import annotations

import logging
import queue
import signal
import time
from typing import Any, Callable, Optional

logger = logging.getLogger("rec53")

ShutdownFunc = Callable[[float], Any]
"""A callable that stops a component, given the seconds it may take."""

_POLL_INTERVAL = 0.01


def graceful_shutdown(timeout: float, *args: Optional[ShutdownFunc]) -> list[BaseException]:
    """Call each shutdown function in turn within a shared *timeout* in seconds.

    Each function receives the time left before the deadline (never negative).
    ``None`` entries are skipped. Errors are logged, not raised, and the
    collected errors are returned in call order.
    """
    deadline = time.monotonic() + timeout
    failures: list[BaseException] = []
    for shutdown in args:
        if shutdown is None:
            continue
        remaining = max(0.0, deadline - time.monotonic())
        try:
            shutdown(remaining)
        except Exception as exc:
            logger.error("Shutdown error: %s", exc)
            failures.append(exc)
    return failures


def _signal_name(sig: Any) -> str:
    try:
        return signal.Signals(sig).name
    except (ValueError, TypeError):
        return str(sig)


def wait_for_signal(signals: "queue.Queue[Any]", errors: "queue.Queue[Any]") -> Optional[Any]:
    """Block until a signal or a server error arrives.

    Returns the signal taken from *signals*, or ``None`` when an item (an
    error, or ``None`` for a clean stop) arrived on *errors* instead.
    """
    while True:
        try:
            err = errors.get_nowait()
        except queue.Empty:
            pass
        else:
            if err is not None:
                logger.error("Server error: %s", err)
            return None
        try:
            sig = signals.get_nowait()
        except queue.Empty:
            pass
        else:
            logger.info("Signal (%s) received, shutting down gracefully", _signal_name(sig))
            return sig
        time.sleep(_POLL_INTERVAL)