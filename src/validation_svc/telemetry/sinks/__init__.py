"""Event sinks - destinations for request notifications."""

from .base import EventSink
from .console import ConsoleSink
from .file import FileSink

__all__ = [
    "EventSink",
    "ConsoleSink",
    "FileSink",
]
