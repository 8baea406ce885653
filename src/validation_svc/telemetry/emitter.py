"""Non-blocking notification emitter."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .events import RequestEvent


logger = logging.getLogger(__name__)


@dataclass
class EventEmitter:
    """
    Non-blocking emitter for request notifications.

    The intake and confirmation paths call `emit()` while holding the
    request log lock, so emitting only enqueues the event. Delivery to
    consumers happens in `process_loop()` (a background task) or when
    the queue is drained.
    """
    # Maximum queue depth
    max_queue_size: int = 10000

    # "drop" = count and drop events when the queue is full
    # "raise" = raise asyncio.QueueFull, aborting the emitting operation
    overflow_policy: str = "drop"

    # Internal state
    _queue: asyncio.Queue | None = field(default=None, init=False)
    _consumers: list[Callable[[RequestEvent], Any]] = field(default_factory=list, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "emitted": 0,
            "delivered": 0,
            "dropped": 0,
            "errors": 0,
        }

    async def start(self) -> None:
        """Initialize the emitter (call on startup)."""
        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        logger.info(f"Event emitter started (max_queue={self.max_queue_size})")

    async def stop(self) -> None:
        """Stop the emitter and deliver remaining events."""
        await self.drain()
        logger.info(f"Event emitter stopped. Stats: {self._stats}")

    def add_consumer(self, consumer: Callable[[RequestEvent], Any]) -> None:
        """Add a consumer; sync callables and ones returning awaitables are both accepted."""
        self._consumers.append(consumer)

    def emit(self, event: RequestEvent) -> bool:
        """
        Enqueue an event (non-blocking).

        Returns True if queued, False if dropped.
        """
        if self._queue is None:
            logger.warning(f"Event emitter not started, dropping {event.event_type.value}")
            self._stats["dropped"] += 1
            return False

        try:
            self._queue.put_nowait(event)
            self._stats["emitted"] += 1
            return True
        except asyncio.QueueFull:
            if self.overflow_policy == "drop":
                logger.warning(f"Event queue full, dropping {event.event_type.value}")
                self._stats["dropped"] += 1
                return False
            raise

    async def drain(self) -> int:
        """Deliver every queued event now. Returns the number delivered."""
        delivered = 0
        if self._queue is None:
            return delivered
        while not self._queue.empty():
            try:
                event = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            await self._deliver(event)
            delivered += 1
        return delivered

    async def process_loop(self) -> None:
        """
        Main delivery loop - runs until cancelled.

        Call this as a background task.
        """
        if self._queue is None:
            raise RuntimeError("Emitter not started")

        logger.info("Event delivery loop started")

        while True:
            try:
                event = await self._queue.get()
                await self._deliver(event)
                self._queue.task_done()
            except asyncio.CancelledError:
                logger.info("Event delivery loop cancelled")
                break
            except Exception as e:
                logger.error(f"Error delivering event: {e}")
                self._stats["errors"] += 1

    async def _deliver(self, event: RequestEvent) -> None:
        """Deliver event to all consumers."""
        for consumer in self._consumers:
            try:
                result = consumer(event)
                if inspect.isawaitable(result):
                    await result
                self._stats["delivered"] += 1
            except Exception as e:
                logger.error(f"Consumer error on {event.event_type.value}: {e}")
                self._stats["errors"] += 1

    @property
    def queue_depth(self) -> int:
        """Current queue depth."""
        return self._queue.qsize() if self._queue else 0

    @property
    def stats(self) -> dict:
        """Get emitter statistics."""
        return {
            **self._stats,
            "queue_depth": self.queue_depth,
            "consumers": len(self._consumers),
        }
