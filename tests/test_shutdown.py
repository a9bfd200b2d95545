import logging
import queue
import signal
import threading

from rec53.shutdown import graceful_shutdown, wait_for_signal


def _later(action, delay=0.01):
    timer = threading.Timer(delay, action)
    timer.start()
    return timer


def test_none_shutdown_is_skipped():
    assert graceful_shutdown(5.0, None) == []


def test_successful_shutdown_is_called_with_time_left():
    received = []
    failures = graceful_shutdown(5.0, received.append)
    assert failures == []
    assert len(received) == 1
    assert 0.0 <= received[0] <= 5.0


def test_shutdown_error_is_logged_not_raised(caplog):
    def broken(_remaining):
        raise RuntimeError("shutdown error")

    with caplog.at_level(logging.ERROR, logger="rec53"):
        failures = graceful_shutdown(5.0, broken)
    assert [str(exc) for exc in failures] == ["shutdown error"]
    assert "Shutdown error: shutdown error" in caplog.text


def test_multiple_shutdowns_mixed():
    calls = []

    def ok_first(_remaining):
        calls.append("first")

    def failing(_remaining):
        calls.append("second")
        raise RuntimeError("error 1")

    def ok_last(_remaining):
        calls.append("third")

    failures = graceful_shutdown(5.0, ok_first, failing, ok_last)
    assert calls == ["first", "second", "third"]
    assert [str(exc) for exc in failures] == ["error 1"]


def test_empty_shutdown_list():
    assert graceful_shutdown(5.0) == []


def test_shutdown_called_even_when_deadline_passed():
    received = []
    graceful_shutdown(0.0, received.append)
    assert received == [0.0]


def test_wait_for_signal_returns_signal():
    signals = queue.Queue()
    errors = queue.Queue()
    timer = _later(lambda: signals.put(signal.SIGTERM))
    result = wait_for_signal(signals, errors)
    timer.join()
    assert result == signal.SIGTERM


def test_wait_for_signal_server_error(caplog):
    signals = queue.Queue()
    errors = queue.Queue()
    timer = _later(lambda: errors.put(RuntimeError("server error")))
    with caplog.at_level(logging.ERROR, logger="rec53"):
        result = wait_for_signal(signals, errors)
    timer.join()
    assert result is None
    assert "Server error: server error" in caplog.text


def test_wait_for_signal_nil_error():
    signals = queue.Queue()
    errors = queue.Queue()
    timer = _later(lambda: errors.put(None))
    result = wait_for_signal(signals, errors)
    timer.join()
    assert result is None
    assert signals.empty()


def test_wait_for_signal_already_pending():
    signals = queue.Queue()
    errors = queue.Queue()
    signals.put(signal.SIGINT)
    assert wait_for_signal(signals, errors) == signal.SIGINT