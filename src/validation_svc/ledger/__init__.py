"""Asset ownership ledger - contract and in-memory implementation."""

from .base import AssetLedger, AssetNotFound, LedgerError
from .memory import InMemoryLedger

__all__ = [
    "AssetLedger",
    "AssetNotFound",
    "LedgerError",
    "InMemoryLedger",
]
