"""In-memory ownership ledger."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from ..requests.types import NULL_ADDRESS, normalize_address
from .base import AssetLedger, AssetNotFound, LedgerError

logger = logging.getLogger(__name__)


@dataclass
class InMemoryLedger(AssetLedger):
    """
    Thread-safe in-memory ledger of asset ownership and permissions.

    Used by the service when no external ledger is wired in, and by tests.
    Addresses are stored normalized (lower case).
    """
    _owners: dict[int, str] = field(default_factory=dict)
    _approvals: dict[int, str] = field(default_factory=dict)
    _operators: dict[str, set[str]] = field(default_factory=dict)  # owner -> operators
    _lock: threading.RLock = field(default_factory=threading.RLock)

    # =========================================================================
    # Lifecycle (bootstrap only)
    # =========================================================================

    def mint(self, to_address: str, asset_id: int) -> None:
        """Create `asset_id` owned by `to_address`."""
        to_address = normalize_address(to_address)
        if to_address == NULL_ADDRESS:
            raise LedgerError("Cannot mint to the null address")
        with self._lock:
            if asset_id in self._owners:
                raise LedgerError(f"Asset already exists: {asset_id}")
            self._owners[asset_id] = to_address
            logger.debug(f"Minted asset {asset_id} to {to_address}")

    def burn(self, asset_id: int) -> None:
        """Destroy `asset_id` and its single-asset approval."""
        with self._lock:
            if asset_id not in self._owners:
                raise AssetNotFound(asset_id)
            del self._owners[asset_id]
            self._approvals.pop(asset_id, None)

    # =========================================================================
    # Queries
    # =========================================================================

    def exists(self, asset_id: int) -> bool:
        with self._lock:
            return asset_id in self._owners

    def owner_of(self, asset_id: int) -> str:
        with self._lock:
            owner = self._owners.get(asset_id)
            if owner is None:
                raise AssetNotFound(asset_id)
            return owner

    def get_approved(self, asset_id: int) -> str | None:
        with self._lock:
            if asset_id not in self._owners:
                raise AssetNotFound(asset_id)
            return self._approvals.get(asset_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        with self._lock:
            return normalize_address(operator) in self._operators.get(normalize_address(owner), set())

    def balance_of(self, owner: str) -> int:
        return len(self.assets_of(owner))

    def assets_of(self, owner: str) -> list[int]:
        owner = normalize_address(owner)
        with self._lock:
            return sorted(a for a, o in self._owners.items() if o == owner)

    # =========================================================================
    # Raw mutations
    # =========================================================================

    def raw_transfer(self, from_address: str, to_address: str, asset_id: int) -> None:
        with self._lock:
            if asset_id not in self._owners:
                raise AssetNotFound(asset_id)
            self._owners[asset_id] = normalize_address(to_address)
            self._approvals.pop(asset_id, None)
            logger.info(f"Asset {asset_id} transferred {from_address} -> {to_address}")

    def raw_approve(self, grantee: str, asset_id: int) -> None:
        with self._lock:
            if asset_id not in self._owners:
                raise AssetNotFound(asset_id)
            self._approvals[asset_id] = normalize_address(grantee)
            logger.info(f"Asset {asset_id} approved for {grantee}")

    def raw_approve_for_all(self, owner: str, operator: str, grant: bool) -> None:
        owner = normalize_address(owner)
        operator = normalize_address(operator)
        with self._lock:
            operators = self._operators.setdefault(owner, set())
            if grant:
                operators.add(operator)
            else:
                operators.discard(operator)
            logger.info(f"Operator {operator} for {owner} set to {grant}")

    # =========================================================================
    # Persistence
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """Owners, single-asset approvals and operators as plain data."""
        with self._lock:
            return {
                "owners": dict(sorted(self._owners.items())),
                "approvals": dict(sorted(self._approvals.items())),
                "operators": {
                    owner: sorted(ops) for owner, ops in sorted(self._operators.items()) if ops
                },
            }

    def restore(self, snapshot: dict[str, Any]) -> None:
        with self._lock:
            self._owners = {
                int(a): normalize_address(o) for a, o in (snapshot.get("owners") or {}).items()
            }
            self._approvals = {
                int(a): normalize_address(g) for a, g in (snapshot.get("approvals") or {}).items()
            }
            self._operators = {
                normalize_address(owner): {normalize_address(op) for op in ops}
                for owner, ops in (snapshot.get("operators") or {}).items()
            }
            logger.info(f"Ledger restored with {len(self._owners)} assets")

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "assets": len(self._owners),
                "approvals": len(self._approvals),
                "operators": sum(len(ops) for ops in self._operators.values()),
            }
