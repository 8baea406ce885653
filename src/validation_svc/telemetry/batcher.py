"""Ordered notification batching in front of a sink."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter, deque
from dataclasses import dataclass, field

from .events import EventType, RequestEvent
from .sinks.base import EventSink


logger = logging.getLogger(__name__)


@dataclass
class NotificationBatcher:
    """
    Buffers request notifications in emission order and hands them to a sink.

    Registered directly as an `EventEmitter` consumer. The buffer is flushed
    when it holds `batch_size` events, as soon as a confirmation arrives
    (with `flush_on_confirm`), and by `run()` once `flush_interval_seconds`
    pass without a flush. Flushes go out in chunks of at most `batch_size`.

    A chunk the sink rejects stays at the head of the buffer and is retried
    on the next flush, so observers never see a later notification before
    an earlier one. Past `max_buffered` the oldest events are discarded.
    """
    sink: EventSink
    batch_size: int = 100
    flush_interval_seconds: float = 1.0
    flush_on_confirm: bool = True
    max_buffered: int = 10000

    _pending: deque[RequestEvent] = field(default_factory=deque, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _last_flush: float = field(default_factory=time.monotonic, init=False)
    _received: Counter = field(default_factory=Counter, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "batches_sent": 0,
            "events_sent": 0,
            "flush_errors": 0,
            "discarded": 0,
        }

    async def __call__(self, event: RequestEvent) -> None:
        async with self._lock:
            if len(self._pending) >= self.max_buffered:
                oldest = self._pending.popleft()
                self._stats["discarded"] += 1
                logger.warning(
                    f"Notification buffer full, discarding "
                    f"{oldest.event_type.value} #{oldest.request_index}"
                )
            self._pending.append(event)
            self._received[event.event_type.value] += 1

            if self._due(event):
                await self._flush_locked()

    def _due(self, event: RequestEvent) -> bool:
        if len(self._pending) >= self.batch_size:
            return True
        return self.flush_on_confirm and event.event_type is EventType.REQUEST_CONFIRMED

    async def flush(self) -> int:
        """Send everything buffered. Returns the number of events sent."""
        async with self._lock:
            return await self._flush_locked()

    async def _flush_locked(self) -> int:
        sent = 0
        while self._pending:
            chunk = [self._pending[i] for i in range(min(self.batch_size, len(self._pending)))]
            try:
                await self.sink.deliver(chunk)
            except Exception as e:
                self._stats["flush_errors"] += 1
                logger.error(f"Sink failed on {len(chunk)} notifications, keeping them for retry: {e}")
                break
            for _ in chunk:
                self._pending.popleft()
            sent += len(chunk)
            self._stats["batches_sent"] += 1
            self._stats["events_sent"] += len(chunk)

        self._last_flush = time.monotonic()
        return sent

    async def run(self) -> None:
        """Interval flush loop; run as a background task until cancelled."""
        logger.info(f"Notification batcher started (interval={self.flush_interval_seconds}s)")
        while True:
            try:
                await asyncio.sleep(self.flush_interval_seconds)
                if time.monotonic() - self._last_flush >= self.flush_interval_seconds:
                    await self.flush()
            except asyncio.CancelledError:
                logger.info("Notification batcher cancelled")
                break

    async def stop(self) -> None:
        """Final flush; logs anything the sink still refuses."""
        await self.flush()
        if self._pending:
            logger.warning(f"Notification batcher stopped with {len(self._pending)} undelivered events")
        logger.info(f"Notification batcher stopped. Stats: {self.stats}")

    @property
    def stats(self) -> dict:
        return {
            **self._stats,
            "buffered": len(self._pending),
            "received": dict(self._received),
        }
