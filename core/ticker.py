"""Fixed-rate background scheduler for live simulation ticks."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable


LOGGER = logging.getLogger(__name__)


class FixedRateTicker:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread.

    Deadlines advance by exactly one interval per call, so a slow tick is
    followed by immediate catch-up ticks rather than a skipped one. A failing
    callback is logged and the schedule continues.
    """

    def __init__(self, interval: float, callback: Callable[[], object], name: str = "ticker") -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be > 0.")
        self.interval = float(interval)
        self.callback = callback
        self.name = name
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        """Start ticking; no-op when already running."""
        if self.is_running:
            return
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError(f"{self.name} is still finishing its last callback; stop() it again first.")
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name=self.name, daemon=True
        )
        self._thread.start()
        LOGGER.info("%s started (interval %.3fs)", self.name, self.interval)

    def stop(self, timeout: float | None = 2.0) -> None:
        """Cancel the schedule; safe to call repeatedly."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is threading.current_thread():
            # Called from the callback; the loop exits once it returns.
            LOGGER.info("%s stopping", self.name)
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            LOGGER.warning("%s is still finishing its last callback after stop()", self.name)
            return
        self._thread = None
        LOGGER.info("%s stopped", self.name)

    def _run(self, stop_event: threading.Event) -> None:
        next_deadline = time.monotonic() + self.interval
        while not stop_event.wait(max(0.0, next_deadline - time.monotonic())):
            try:
                self.callback()
            except Exception:
                LOGGER.exception("%s callback failed; keeping schedule", self.name)
            next_deadline += self.interval
