"""Fan-out of world events to subscribers off the tick thread."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock, Semaphore
from typing import Any, Callable


LOGGER = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class EventBus:
    """Non-blocking publish/subscribe.

    Subscribers run in a worker pool, so ``publish`` returns as soon as the
    deliveries are queued. At most ``max_pending`` deliveries are in flight;
    anything beyond that is dropped and counted in ``dropped``.
    """

    def __init__(self, max_workers: int = 4, max_pending: int = 256) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)
        self._lock = Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="event-bus")
        self._in_flight = Semaphore(max(1, int(max_pending)))
        self._dropped: Counter[str] = Counter()

    @property
    def dropped(self) -> dict[str, int]:
        with self._lock:
            return dict(self._dropped)

    def subscribe(self, event_type: str, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers[event_type].append(subscriber)

    def unsubscribe(self, event_type: str, subscriber: Subscriber) -> None:
        with self._lock:
            registered = self._subscribers.get(event_type)
            if registered and subscriber in registered:
                registered.remove(subscriber)

    def publish(self, event_type: str, payload: Any) -> None:
        with self._lock:
            targets = tuple(self._subscribers.get(event_type, ()))
        for subscriber in targets:
            if not self._in_flight.acquire(blocking=False):
                with self._lock:
                    self._dropped[event_type] += 1
                LOGGER.debug("Dropping %s delivery; subscribers are backlogged", event_type)
                continue
            try:
                future = self._executor.submit(self._deliver, event_type, subscriber, payload)
            except RuntimeError:
                self._in_flight.release()
                LOGGER.warning("Event bus is closed; dropping %s delivery", event_type)
                continue
            future.add_done_callback(self._release)

    def close(self) -> None:
        """Wait for queued deliveries, then stop the worker pool."""
        self._executor.shutdown(wait=True)

    def _release(self, _future: Future) -> None:
        self._in_flight.release()

    @staticmethod
    def _deliver(event_type: str, subscriber: Subscriber, payload: Any) -> None:
        try:
            subscriber(payload)
        except Exception:
            LOGGER.exception("Subscriber for %s failed", event_type)
