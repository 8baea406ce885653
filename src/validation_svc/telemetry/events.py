"""Notification event types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union


class EventType(str, Enum):
    """Kind of notification emitted by the validation core."""
    TRANSFER_REQUEST_CREATED = "transfer_request_created"
    APPROVAL_REQUEST_CREATED = "approval_request_created"
    REQUEST_CONFIRMED = "request_confirmed"


def _event_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    """
    Identity of the caller of an operation.

    `address` is the account the caller acts as; the remaining fields
    are carried for audit.
    """
    address: str | None = None

    # Application/client identifier
    app_id: str | None = None

    # Additional claims from auth token
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def principal(self) -> str:
        """Primary identifier for this caller."""
        return self.address or self.app_id or "anonymous"

    def __str__(self) -> str:
        return self.principal


@dataclass(frozen=True, slots=True)
class TransferRequestCreated:
    """A transfer was deferred and recorded as pending."""
    from_address: str
    to_address: str
    asset_id: int
    request_index: int
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)

    event_type = EventType.TRANSFER_REQUEST_CREATED

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "from": self.from_address,
            "to": self.to_address,
            "asset_id": self.asset_id,
            "request_index": self.request_index,
        }


@dataclass(frozen=True, slots=True)
class ApprovalRequestCreated:
    """An approval (single asset or blanket) was recorded as pending."""
    owner: str
    grantee: str
    asset_id: int | None
    approve_all: bool
    request_index: int
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)

    event_type = EventType.APPROVAL_REQUEST_CREATED

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "owner": self.owner,
            "grantee": self.grantee,
            "asset_id": self.asset_id,
            "approve_all": self.approve_all,
            "request_index": self.request_index,
        }


@dataclass(frozen=True, slots=True)
class RequestConfirmed:
    """A pending request was confirmed and its effect applied."""
    kind: str  # transfer | approval
    request_index: int
    confirmed_by: str | None = None
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)

    event_type = EventType.REQUEST_CONFIRMED

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind,
            "request_index": self.request_index,
            "confirmed_by": self.confirmed_by,
        }


RequestEvent = Union[TransferRequestCreated, ApprovalRequestCreated, RequestConfirmed]
