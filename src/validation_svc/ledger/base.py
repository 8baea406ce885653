"""Ledger contract consumed by the validation core."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LedgerError(Exception):
    """Raised by ledger implementations."""
    pass


class AssetNotFound(LedgerError, KeyError):
    """Raised when an asset id has no owner of record."""

    def __init__(self, asset_id: int):
        super().__init__(f"Asset not found: {asset_id}")
        self.asset_id = asset_id

    def __str__(self) -> str:
        return self.args[0]


class AssetLedger(ABC):
    """
    Abstract ownership ledger.

    The raw_* mutations are unconditional: callers are responsible for
    authorization. The validation core only uses this contract.
    """

    @abstractmethod
    def owner_of(self, asset_id: int) -> str:
        """Current owner of `asset_id`. Raises AssetNotFound."""
        ...

    @abstractmethod
    def raw_transfer(self, from_address: str, to_address: str, asset_id: int) -> None:
        """Move ownership of `asset_id`, clearing its single-asset approval."""
        ...

    @abstractmethod
    def raw_approve(self, grantee: str, asset_id: int) -> None:
        """Grant `grantee` permission over a single asset."""
        ...

    @abstractmethod
    def raw_approve_for_all(self, owner: str, operator: str, grant: bool) -> None:
        """Set or clear blanket permission of `operator` over `owner`'s assets."""
        ...

    @abstractmethod
    def get_approved(self, asset_id: int) -> str | None:
        """Address approved for `asset_id`, if any."""
        ...

    @abstractmethod
    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        """Whether `operator` holds blanket permission over `owner`'s assets."""
        ...

    def is_approved_or_owner(self, spender: str, asset_id: int) -> bool:
        """Whether `spender` may move `asset_id`. Addresses compare case-insensitively."""
        from ..requests.types import normalize_address

        spender = normalize_address(spender)
        owner = self.owner_of(asset_id)
        return (
            spender == normalize_address(owner)
            or spender == normalize_address(self.get_approved(asset_id))
            or self.is_approved_for_all(owner, spender)
        )

    def snapshot(self) -> dict[str, Any] | None:
        """
        Serializable copy of the ledger state, stored next to the request logs.

        Ledgers that persist their own state return None.
        """
        return None

    def restore(self, snapshot: dict[str, Any]) -> None:
        """Replace the ledger state with a `snapshot()` result."""
        raise LedgerError(f"{type(self).__name__} does not restore snapshots")
