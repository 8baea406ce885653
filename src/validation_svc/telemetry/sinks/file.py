"""File sink for notifications (JSON lines)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from ..events import RequestEvent
from .base import EventSink


@dataclass
class FileSink(EventSink):
    """
    Sink that appends events to a JSONL file, one event per line.
    """
    path: str = "validation-events.jsonl"
    encoding: str = "utf-8"

    _file: TextIO | None = field(default=None, init=False)

    async def start(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding=self.encoding)

    async def stop(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    async def send(self, events: list[RequestEvent]) -> None:
        if not self._file:
            await self.start()

        for event in events:
            self._file.write(json.dumps(event.to_dict(), default=str) + "\n")

        self._file.flush()
