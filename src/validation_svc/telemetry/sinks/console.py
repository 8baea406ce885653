"""Console sink for development/debugging."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass

from ..events import RequestEvent
from .base import EventSink


@dataclass
class ConsoleSink(EventSink):
    """Sink that writes events to stdout or stderr."""
    stream: str = "stdout"  # stdout | stderr
    format: str = "json"  # json | compact
    prefix: str = "[EVENT] "

    async def send(self, events: list[RequestEvent]) -> None:
        out = sys.stdout if self.stream == "stdout" else sys.stderr

        for event in events:
            print(f"{self.prefix}{self._format_event(event)}", file=out)

    def _format_event(self, event: RequestEvent) -> str:
        if self.format == "compact":
            data = event.to_dict()
            return (
                f"{data['timestamp']} "
                f"{data['event_type']} "
                f"#{data['request_index']}"
            )
        return json.dumps(event.to_dict(), default=str)
