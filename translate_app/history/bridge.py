from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
import threading
from typing import Generic, Protocol, TypeVar, cast

from translate_app import telemetry

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class FeedSource(Protocol[T_co]):
    def snapshot(self) -> T_co: ...

    def add_change_listener(
        self, listener: Callable[[T_co], None]
    ) -> Callable[[], None]: ...


@dataclass(slots=True, eq=False)
class Subscription:
    _detach: Callable[[], None]
    _closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._detach()


class SharedFeed(Generic[T]):
    """Multicast view over a source's change listener.

    The feed attaches a single listener to its source on the first
    subscription and keeps it until ``close()``; consumers come and go
    without touching the source. Every new consumer is handed the latest
    value straight away, then each value the source publishes afterwards.
    """

    def __init__(self, source: FeedSource[T], *, name: str = "feed") -> None:
        self._source = source
        self._name = name
        self._lock = threading.RLock()
        self._consumers: dict[int, Callable[[T], None]] = {}
        self._next_token = 0
        self._latest: T | None = None
        self._has_latest = False
        self._detach_source: Callable[[], None] | None = None
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._consumers)

    @property
    def is_attached(self) -> bool:
        with self._lock:
            return self._detach_source is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def latest(self) -> T | None:
        with self._lock:
            return self._latest

    def subscribe(self, consumer: Callable[[T], None]) -> Subscription:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"{self._name} feed is closed")
            self._ensure_attached()
            token = self._next_token
            self._next_token += 1
            self._consumers[token] = consumer
            if self._has_latest:
                self._deliver(consumer, cast(T, self._latest))
        return Subscription(lambda: self._unsubscribe(token))

    async def stream(self) -> AsyncIterator[T]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[T] = asyncio.Queue()

        def push(value: T) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, value)

        subscription = self.subscribe(push)
        try:
            while True:
                yield await queue.get()
        finally:
            subscription.close()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            detach = self._detach_source
            self._detach_source = None
            self._consumers.clear()
        if detach is not None:
            detach()
        telemetry.log_event("feed.closed", feed=self._name)

    def _ensure_attached(self) -> None:
        if self._detach_source is not None:
            return
        detach = self._source.add_change_listener(self._publish)
        # Seed after attaching so a change racing the attach is not lost.
        try:
            self._latest = self._source.snapshot()
        except Exception:
            detach()
            raise
        self._has_latest = True
        self._detach_source = detach
        telemetry.log_event("feed.attached", feed=self._name)

    def _publish(self, value: T) -> None:
        with self._lock:
            if self._closed:
                return
            self._latest = value
            self._has_latest = True
            for consumer in list(self._consumers.values()):
                self._deliver(consumer, value)

    def _unsubscribe(self, token: int) -> None:
        with self._lock:
            self._consumers.pop(token, None)

    def _deliver(self, consumer: Callable[[T], None], value: T) -> None:
        try:
            consumer(value)
        except Exception as exc:
            telemetry.log_error("feed.consumer_failed", exc, feed=self._name)
