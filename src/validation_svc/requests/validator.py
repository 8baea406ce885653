"""Request validator - confirms pending requests exactly once."""

from __future__ import annotations

import logging

from ..ledger.base import AssetLedger
from ..telemetry.emitter import EventEmitter
from ..telemetry.events import RequestConfirmed
from .errors import OwnershipChanged, UnauthorizedValidator
from .log import RequestLog
from .policy import AllowAnyPolicy, ValidatorPolicy
from .types import ApprovalRequest, TransferRequest, normalize_address

logger = logging.getLogger(__name__)


class RequestValidator:
    """
    Confirms pending requests and applies their deferred effect.

    Confirmation is the only place a pending request touches the ledger.
    Who may confirm is decided by the injected `ValidatorPolicy`.
    """

    def __init__(
        self,
        ledger: AssetLedger,
        transfers: RequestLog[TransferRequest],
        approvals: RequestLog[ApprovalRequest],
        policy: ValidatorPolicy | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        self._ledger = ledger
        self._transfers = transfers
        self._approvals = approvals
        self._policy = policy or AllowAnyPolicy()
        self._emitter = emitter

    def confirm_transfer(self, request_id: int, caller: str | None = None) -> TransferRequest:
        """
        Confirm transfer request `request_id` and move the asset.

        Current ownership is not re-checked: the stored `from_address` was
        verified when the request was filed.
        """
        caller = self._authorize(caller, "transfer", request_id)

        def apply(request: TransferRequest) -> None:
            self._ledger.raw_transfer(request.from_address, request.to_address, request.asset_id)

        confirmed = self._transfers.confirm(request_id, apply, validator=caller)
        self._announce("transfer", request_id, caller)
        return confirmed

    def confirm_approval(self, request_id: int, caller: str | None = None) -> ApprovalRequest:
        """
        Confirm approval request `request_id` and grant the permission.

        A single-asset approval fails with OwnershipChanged (and stays
        pending) if the asset changed hands since the request was filed.
        """
        caller = self._authorize(caller, "approval", request_id)

        def apply(request: ApprovalRequest) -> None:
            if request.approve_all:
                self._ledger.raw_approve_for_all(request.owner, request.grantee, True)
                return

            current_owner = normalize_address(self._ledger.owner_of(request.asset_id))
            if current_owner != request.owner:
                logger.warning(
                    f"Approval request {request_id} rejected: asset {request.asset_id} "
                    f"now owned by {current_owner}"
                )
                raise OwnershipChanged(request_id, request.owner, current_owner)
            self._ledger.raw_approve(request.grantee, request.asset_id)

        confirmed = self._approvals.confirm(request_id, apply, validator=caller)
        self._announce("approval", request_id, caller)
        return confirmed

    def _authorize(self, caller: str | None, kind: str, request_id: int) -> str | None:
        caller = normalize_address(caller)
        if not self._policy.is_authorized_validator(caller):
            logger.warning(f"Rejected confirmation of {kind} request {request_id} by {caller or 'anonymous'}")
            raise UnauthorizedValidator(f"{caller or 'anonymous'} is not an authorized validator")
        return caller

    def _announce(self, kind: str, request_id: int, caller: str | None) -> None:
        if self._emitter is not None:
            self._emitter.emit(RequestConfirmed(kind=kind, request_index=request_id, confirmed_by=caller))
