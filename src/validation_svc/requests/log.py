"""Request log - thread-safe append-only store indexed by request number."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Generic, TypeVar, Union

from .errors import AlreadyValidated, OutOfRange
from .types import ApprovalRequest, RequestKind, RequestState, TransferRequest

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Union[TransferRequest, ApprovalRequest])


class RequestLog(Generic[R]):
    """
    Append-only log of requests of a single kind.

    Entries are addressed by their index, assigned densely from 0.
    Entries are never removed; confirming a request replaces the slot
    with its confirmed snapshot. All reads return immutable snapshots.
    """

    def __init__(self, kind: RequestKind) -> None:
        self.kind = kind
        self._entries: list[R] = []
        self._lock = threading.RLock()

    def append(self, entry: R, on_append: Callable[[int, R], None] | None = None) -> int:
        """
        Append a request at the next index and return that index.

        `on_append` runs under the log lock after the index is assigned and
        before the entry becomes visible; if it raises, nothing is written.
        """
        with self._lock:
            index = len(self._entries)
            stored = replace(
                entry,
                request_index=index,
                created_at=entry.created_at or datetime.now(timezone.utc).isoformat(),
            )
            if on_append is not None:
                on_append(index, stored)
            self._entries.append(stored)
            logger.info(f"{self.kind.value} request {index} recorded")
            return index

    def get(self, index: int) -> R:
        """Get the request at `index`."""
        with self._lock:
            self._check_range(index)
            return self._entries[index]

    def confirm(
        self,
        index: int,
        effect: Callable[[R], None],
        validator: str | None = None,
    ) -> R:
        """
        Confirm the pending request at `index`.

        `effect` applies the deferred mutation; the slot is only marked
        confirmed if it returns without raising. Confirmations on the same
        log are serialized so a request can never be confirmed twice.
        """
        with self._lock:
            self._check_range(index)
            entry = self._entries[index]
            if entry.state is RequestState.CONFIRMED:
                raise AlreadyValidated(self.kind.value, index)

            effect(entry)

            confirmed = entry.confirmed(validator)
            self._entries[index] = confirmed
            logger.info(f"{self.kind.value} request {index} confirmed by {validator}")
            return confirmed

    def restore(self, entries: list[R]) -> None:
        """Load a persisted log; only allowed while the log is empty."""
        with self._lock:
            if self._entries:
                raise ValueError(f"{self.kind.value} log is not empty ({len(self._entries)} entries)")
            self._entries.extend(
                replace(entry, request_index=i) for i, entry in enumerate(entries)
            )

    def pending(self) -> list[R]:
        """All requests still awaiting confirmation, in index order."""
        with self._lock:
            return [e for e in self._entries if e.state is RequestState.PENDING]

    def all_entries(self) -> list[R]:
        """Snapshot of every entry in index order."""
        with self._lock:
            return list(self._entries)

    def count_by_state(self) -> dict[str, int]:
        """Counts grouped by state, plus the total."""
        with self._lock:
            counts: dict[str, int] = {state.value: 0 for state in RequestState}
            for entry in self._entries:
                counts[entry.state.value] += 1
            counts["total"] = len(self._entries)
            return counts

    def _check_range(self, index: int) -> None:
        if index < 0 or index >= len(self._entries):
            raise OutOfRange(self.kind.value, index, len(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
