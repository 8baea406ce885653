"""Sink contract for request notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..events import EventType, RequestEvent


@dataclass
class EventSink(ABC):
    """
    Destination for request notifications.

    `event_types` subscribes the sink to some notification kinds only
    (values of `EventType`, e.g. ["request_confirmed"]); None takes all.
    Sinks work as async context managers around `start()` / `stop()`.
    """
    event_types: list[str] | None = None

    def __post_init__(self):
        if self.event_types is not None:
            known = {t.value for t in EventType}
            unknown = sorted(set(self.event_types) - known)
            if unknown:
                raise ValueError(f"Unknown event types for {type(self).__name__}: {unknown}")

    @abstractmethod
    async def send(self, events: list[RequestEvent]) -> None:
        """Write events this sink accepts, in emission order."""
        ...

    def accepts(self, event: RequestEvent) -> bool:
        return self.event_types is None or event.event_type.value in self.event_types

    async def deliver(self, events: list[RequestEvent]) -> int:
        """Send the accepted subset of `events`. Returns how many were sent."""
        accepted = [e for e in events if self.accepts(e)]
        if accepted:
            await self.send(accepted)
        return len(accepted)

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def __aenter__(self) -> EventSink:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
