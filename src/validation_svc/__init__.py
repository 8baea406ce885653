"""
Asset Validation Service - two-phase authorization for asset transfers

A validation checkpoint in front of an asset ownership ledger providing:
- Pending transfer and approval requests recorded in append-only logs
- Exactly-once confirmation by an authorized validator
- Direct execution for operator-initiated transfers
- Notification events for every request created or confirmed
"""

__version__ = "0.1.0"
