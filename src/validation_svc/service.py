"""Core service layer - the validation protocol in front of an asset ledger.

Flow:
1. An owner submits a transfer or approval; it is recorded as pending
2. Observers are notified with the new request index
3. An authorized validator confirms the request by index
4. Only then is the ledger mutated

Transfers submitted by an approved operator (caller != owner) skip
steps 1-3 and execute immediately.
"""

from __future__ import annotations

import logging

from .ledger.base import AssetLedger
from .requests.intake import RequestIntake
from .requests.log import RequestLog
from .requests.policy import ValidatorPolicy
from .requests.types import ApprovalRequest, RequestKind, TransferRequest
from .requests.validator import RequestValidator
from .telemetry.emitter import EventEmitter


logger = logging.getLogger(__name__)


class ValidationService:
    """
    Facade over request intake, confirmation and the query surface.

    Owns both request logs; the ledger, validator policy and emitter
    are injected.
    """

    def __init__(
        self,
        ledger: AssetLedger,
        policy: ValidatorPolicy | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        self.ledger = ledger
        self.emitter = emitter
        self.transfers: RequestLog[TransferRequest] = RequestLog(RequestKind.TRANSFER)
        self.approvals: RequestLog[ApprovalRequest] = RequestLog(RequestKind.APPROVAL)
        self.intake = RequestIntake(ledger, self.transfers, self.approvals, emitter=emitter)
        self.validator = RequestValidator(
            ledger, self.transfers, self.approvals, policy=policy, emitter=emitter,
        )

    # =========================================================================
    # Intake
    # =========================================================================

    def submit_transfer(self, caller: str, from_address: str, to_address: str, asset_id: int) -> int | None:
        return self.intake.submit_transfer(caller, from_address, to_address, asset_id)

    def submit_approval(self, owner: str, grantee: str, asset_id: int) -> int:
        return self.intake.submit_approval(owner, grantee, asset_id)

    def submit_approval_for_all(self, owner: str, operator: str, grant: bool) -> int | None:
        return self.intake.submit_approval_for_all(owner, operator, grant)

    # =========================================================================
    # Confirmation
    # =========================================================================

    def confirm_transfer(self, request_id: int, caller: str | None = None) -> TransferRequest:
        return self.validator.confirm_transfer(request_id, caller)

    def confirm_approval(self, request_id: int, caller: str | None = None) -> ApprovalRequest:
        return self.validator.confirm_approval(request_id, caller)

    # =========================================================================
    # Queries
    # =========================================================================

    def request_by_id(self, request_id: int) -> TransferRequest:
        """Transfer request at `request_id`. Raises OutOfRange."""
        return self.transfers.get(request_id)

    def approval_by_id(self, request_id: int) -> ApprovalRequest:
        """Approval request at `request_id`. Raises OutOfRange."""
        return self.approvals.get(request_id)

    def total_transfer_requests(self) -> int:
        return len(self.transfers)

    def total_approval_requests(self) -> int:
        return len(self.approvals)

    def pending_transfers(self) -> list[TransferRequest]:
        """Transfer requests awaiting confirmation, in index order."""
        return self.transfers.pending()

    def pending_approvals(self) -> list[ApprovalRequest]:
        """Approval requests awaiting confirmation, in index order."""
        return self.approvals.pending()

    @staticmethod
    def is_validator_extension() -> bool:
        """Capability probe: this ledger front-end implements request validation."""
        return True

    @property
    def stats(self) -> dict:
        return {
            "transfers": self.transfers.count_by_state(),
            "approvals": self.approvals.count_by_state(),
        }
