"""Request types - pending transfer and approval records."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_address(address: str | None) -> str | None:
    """Canonical form for address comparison (case-insensitive hex)."""
    if address is None:
        return None
    return address.strip().lower()


class RequestState(str, Enum):
    """Validation state of a recorded request."""
    PENDING = "pending"
    CONFIRMED = "confirmed"


class RequestKind(str, Enum):
    """Which log a request lives in."""
    TRANSFER = "transfer"
    APPROVAL = "approval"


@dataclass(frozen=True, slots=True)
class TransferRequest:
    """
    A deferred ownership transfer.

    `from_address` is the owner of record when the request was filed.
    The ledger mutation only happens when the request is confirmed.
    """
    from_address: str
    to_address: str
    asset_id: int
    state: RequestState = RequestState.PENDING

    # Audit trail
    request_index: int | None = None
    submitted_by: str | None = None
    created_at: str | None = None       # ISO format
    confirmed_by: str | None = None
    confirmed_at: str | None = None

    @property
    def valid(self) -> bool:
        return self.state is RequestState.CONFIRMED

    def confirmed(self, validator: str | None = None) -> TransferRequest:
        """Return the confirmed snapshot of this request."""
        return replace(
            self,
            state=RequestState.CONFIRMED,
            confirmed_by=validator,
            confirmed_at=datetime.now(timezone.utc).isoformat(),
        )


@dataclass(frozen=True, slots=True)
class ApprovalRequest:
    """
    A deferred permission grant.

    With `approve_all` the grantee becomes an operator over every asset
    of `owner` and `asset_id` is not used.
    """
    owner: str
    grantee: str
    asset_id: int | None = None
    approve_all: bool = False
    state: RequestState = RequestState.PENDING

    # Audit trail
    request_index: int | None = None
    submitted_by: str | None = None
    created_at: str | None = None
    confirmed_by: str | None = None
    confirmed_at: str | None = None

    @property
    def valid(self) -> bool:
        return self.state is RequestState.CONFIRMED

    def confirmed(self, validator: str | None = None) -> ApprovalRequest:
        """Return the confirmed snapshot of this request."""
        return replace(
            self,
            state=RequestState.CONFIRMED,
            confirmed_by=validator,
            confirmed_at=datetime.now(timezone.utc).isoformat(),
        )
