"""Request intake - turns transfer and approval intents into pending requests."""

from __future__ import annotations

import logging

from ..ledger.base import AssetLedger
from ..telemetry.emitter import EventEmitter
from ..telemetry.events import ApprovalRequestCreated, RequestEvent, TransferRequestCreated
from .errors import (
    CallerNotAuthorized,
    InvalidRecipient,
    InvalidTransferRequest,
    SelfApprovalRejected,
)
from .log import RequestLog
from .types import NULL_ADDRESS, ApprovalRequest, TransferRequest, normalize_address

logger = logging.getLogger(__name__)


def should_defer(caller: str, from_address: str) -> bool:
    """
    Whether a transfer must wait for validation.

    Only owner-initiated transfers are deferred. A caller acting on the
    owner's behalf (an approved operator) transfers immediately.
    """
    return normalize_address(caller) == normalize_address(from_address)


class RequestIntake:
    """
    Accepts transfer and approval intents.

    Deferred intents are appended to the request logs and announced with a
    notification; the ledger is only touched for bypassed transfers and
    operator revocations.
    """

    def __init__(
        self,
        ledger: AssetLedger,
        transfers: RequestLog[TransferRequest],
        approvals: RequestLog[ApprovalRequest],
        emitter: EventEmitter | None = None,
    ) -> None:
        self._ledger = ledger
        self._transfers = transfers
        self._approvals = approvals
        self._emitter = emitter

    # =========================================================================
    # Transfers
    # =========================================================================

    def submit_transfer(
        self,
        caller: str,
        from_address: str,
        to_address: str,
        asset_id: int,
    ) -> int | None:
        """
        Submit an ownership transfer.

        Returns the index of the new pending request, or None when the
        transfer was executed directly (operator bypass).
        """
        caller = normalize_address(caller)
        from_address = normalize_address(from_address)
        to_address = normalize_address(to_address)

        if normalize_address(self._ledger.owner_of(asset_id)) != from_address:
            raise InvalidTransferRequest(f"{from_address} does not own asset {asset_id}")
        if not to_address or to_address == NULL_ADDRESS:
            raise InvalidRecipient(f"Cannot transfer asset {asset_id} to the null address")

        if not should_defer(caller, from_address):
            return self._transfer_directly(caller, from_address, to_address, asset_id)

        request = TransferRequest(
            from_address=from_address,
            to_address=to_address,
            asset_id=asset_id,
            submitted_by=caller,
        )
        index = self._transfers.append(
            request,
            on_append=lambda i, r: self._notify(TransferRequestCreated(
                from_address=r.from_address,
                to_address=r.to_address,
                asset_id=r.asset_id,
                request_index=i,
            )),
        )
        logger.info(f"Transfer of asset {asset_id} {from_address} -> {to_address} pending as request {index}")
        return index

    def _transfer_directly(
        self,
        caller: str,
        from_address: str,
        to_address: str,
        asset_id: int,
    ) -> None:
        if not self._ledger.is_approved_or_owner(caller, asset_id):
            raise CallerNotAuthorized(f"{caller} is not approved for asset {asset_id}")

        self._ledger.raw_transfer(from_address, to_address, asset_id)
        logger.info(f"Operator {caller} transferred asset {asset_id} {from_address} -> {to_address} directly")
        return None

    # =========================================================================
    # Approvals
    # =========================================================================

    def submit_approval(self, owner: str, grantee: str, asset_id: int) -> int:
        """Submit a single-asset approval. Always deferred."""
        request = ApprovalRequest(
            owner=normalize_address(owner),
            grantee=normalize_address(grantee),
            asset_id=asset_id,
            approve_all=False,
            submitted_by=normalize_address(owner),
        )
        index = self._approvals.append(request, on_append=self._announce_approval)
        logger.info(f"Approval of asset {asset_id} for {request.grantee} pending as request {index}")
        return index

    def submit_approval_for_all(self, owner: str, operator: str, grant: bool) -> int | None:
        """
        Set or clear blanket permission for `operator`.

        Grants are deferred and return the request index. Revocations take
        effect immediately and return None.
        """
        owner = normalize_address(owner)
        operator = normalize_address(operator)
        if owner == operator:
            raise SelfApprovalRejected(f"{owner} cannot approve itself as operator")

        if not grant:
            self._ledger.raw_approve_for_all(owner, operator, False)
            logger.info(f"Operator {operator} revoked for {owner}")
            return None

        request = ApprovalRequest(
            owner=owner,
            grantee=operator,
            asset_id=None,
            approve_all=True,
            submitted_by=owner,
        )
        index = self._approvals.append(request, on_append=self._announce_approval)
        logger.info(f"Operator grant {owner} -> {operator} pending as request {index}")
        return index

    def _announce_approval(self, index: int, request: ApprovalRequest) -> None:
        self._notify(ApprovalRequestCreated(
            owner=request.owner,
            grantee=request.grantee,
            asset_id=request.asset_id,
            approve_all=request.approve_all,
            request_index=index,
        ))

    def _notify(self, event: RequestEvent) -> None:
        if self._emitter is not None:
            self._emitter.emit(event)
