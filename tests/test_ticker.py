from __future__ import annotations

import threading
import time

import pytest

from core.ticker import FixedRateTicker


def test_ticker_calls_callback_repeatedly_until_stopped() -> None:
    calls: list[float] = []
    enough = threading.Event()

    def _cb() -> None:
        calls.append(time.monotonic())
        if len(calls) >= 3:
            enough.set()

    ticker = FixedRateTicker(0.01, _cb)
    ticker.start()
    assert enough.wait(timeout=2.0)
    ticker.stop()

    assert ticker.is_running is False
    count = len(calls)
    time.sleep(0.05)
    assert len(calls) == count


def test_start_twice_keeps_single_thread() -> None:
    ticker = FixedRateTicker(0.05, lambda: None)
    ticker.start()
    first = ticker._thread
    ticker.start()
    assert ticker._thread is first
    ticker.stop()


def test_stop_is_idempotent_and_safe_before_start() -> None:
    ticker = FixedRateTicker(0.05, lambda: None)
    ticker.stop()
    ticker.start()
    ticker.stop()
    ticker.stop()
    assert ticker.is_running is False


def test_failing_callback_keeps_schedule(caplog) -> None:
    calls = 0
    recovered = threading.Event()

    def _cb() -> None:
        nonlocal calls
        calls += 1
        if calls <= 2:
            raise RuntimeError("tick blew up")
        recovered.set()

    ticker = FixedRateTicker(0.01, _cb, name="flaky")
    ticker.start()
    assert recovered.wait(timeout=2.0)
    ticker.stop()

    assert "flaky callback failed" in caplog.text


def test_stop_from_inside_callback_does_not_deadlock() -> None:
    done = threading.Event()
    holder: dict[str, FixedRateTicker] = {}

    def _cb() -> None:
        holder["ticker"].stop()
        done.set()

    ticker = FixedRateTicker(0.01, _cb)
    holder["ticker"] = ticker
    ticker.start()

    assert done.wait(timeout=2.0)
    assert ticker.is_running is False


def test_invalid_interval_is_rejected() -> None:
    with pytest.raises(ValueError, match="> 0"):
        FixedRateTicker(0.0, lambda: None)


def test_restart_refused_while_callback_still_running(caplog) -> None:
    entered = threading.Event()
    release = threading.Event()

    def _cb() -> None:
        entered.set()
        release.wait(2.0)

    ticker = FixedRateTicker(0.01, _cb, name="slow")
    ticker.start()
    assert entered.wait(timeout=2.0)

    ticker.stop(timeout=0.01)
    assert "slow is still finishing" in caplog.text
    with pytest.raises(RuntimeError, match="still finishing"):
        ticker.start()

    release.set()
    ticker.stop()
    ticker.start()
    assert ticker.is_running
    ticker.stop()
