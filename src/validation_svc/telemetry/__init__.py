"""Notifications - request events and their non-blocking delivery."""

from .events import (
    ApprovalRequestCreated,
    CallerIdentity,
    EventType,
    RequestConfirmed,
    RequestEvent,
    TransferRequestCreated,
)
from .emitter import EventEmitter
from .batcher import NotificationBatcher

__all__ = [
    "ApprovalRequestCreated",
    "CallerIdentity",
    "EventType",
    "RequestConfirmed",
    "RequestEvent",
    "TransferRequestCreated",
    "EventEmitter",
    "NotificationBatcher",
]
