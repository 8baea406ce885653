"""Request persistence - YAML snapshot of the request logs and ledger state."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..ledger.base import AssetLedger
from .log import RequestLog
from .types import ApprovalRequest, RequestState, TransferRequest

logger = logging.getLogger(__name__)


def load_logs_from_yaml(
    path: str | Path,
    transfers: RequestLog[TransferRequest],
    approvals: RequestLog[ApprovalRequest],
    ledger: AssetLedger | None = None,
) -> tuple[int, int]:
    """
    Restore both logs from a YAML snapshot.

    Entries are restored in file order, which must be index order.
    With a `ledger`, its state is restored from the `ledger:` section. Files
    without that section get every confirmed request replayed instead.
    Returns the number of (transfers, approvals) loaded.
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"Requests file not found: {path}")
        return 0, 0

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    transfer_entries = [_parse_transfer(d) for d in data.get("transfers", [])]
    approval_entries = [_parse_approval(d) for d in data.get("approvals", [])]

    transfers.restore(transfer_entries)
    approvals.restore(approval_entries)

    logger.info(
        f"Loaded {len(transfer_entries)} transfer and "
        f"{len(approval_entries)} approval requests from {path}"
    )

    if ledger is not None:
        if data.get("ledger") is not None:
            ledger.restore(data["ledger"])
        else:
            replayed = replay_confirmed(ledger, transfers, approvals)
            logger.warning(f"No ledger state in {path}; replayed {replayed} confirmed requests")

    return len(transfer_entries), len(approval_entries)


def replay_confirmed(
    ledger: AssetLedger,
    transfers: RequestLog[TransferRequest],
    approvals: RequestLog[ApprovalRequest],
) -> int:
    """
    Re-apply every confirmed request to `ledger` in confirmation order.

    The ledger must hold the state from before the first request. Operator
    transfers and revocations never enter the logs and are not replayed.
    """
    confirmed: list[TransferRequest | ApprovalRequest] = [
        r for r in transfers.all_entries() + approvals.all_entries()
        if r.state is RequestState.CONFIRMED
    ]
    confirmed.sort(key=lambda r: r.confirmed_at or "")

    for request in confirmed:
        if isinstance(request, TransferRequest):
            ledger.raw_transfer(request.from_address, request.to_address, request.asset_id)
        elif request.approve_all:
            ledger.raw_approve_for_all(request.owner, request.grantee, True)
        else:
            ledger.raw_approve(request.grantee, request.asset_id)
    return len(confirmed)


def save_logs_to_yaml(
    path: str | Path,
    transfers: RequestLog[TransferRequest],
    approvals: RequestLog[ApprovalRequest],
    ledger: AssetLedger | None = None,
) -> int:
    """
    Write both logs to a YAML file. Returns the number of entries saved.

    The ledger state is written alongside when `ledger` supports snapshots.
    """
    path = Path(path)
    transfer_entries = transfers.all_entries()
    approval_entries = approvals.all_entries()

    data: dict[str, Any] = {
        "transfers": [_serialize_transfer(r) for r in transfer_entries],
        "approvals": [_serialize_approval(r) for r in approval_entries],
    }
    snapshot = ledger.snapshot() if ledger is not None else None
    if snapshot is not None:
        data["ledger"] = snapshot

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    count = len(transfer_entries) + len(approval_entries)
    logger.info(f"Saved {count} requests to {path}")
    return count


def _parse_state(data: dict[str, Any]) -> RequestState:
    if "state" in data:
        return RequestState(data["state"])
    # Older snapshots carry only the boolean flag
    return RequestState.CONFIRMED if data.get("valid") else RequestState.PENDING


def _parse_transfer(data: dict[str, Any]) -> TransferRequest:
    return TransferRequest(
        from_address=data["from"],
        to_address=data["to"],
        asset_id=int(data["asset_id"]),
        state=_parse_state(data),
        submitted_by=data.get("submitted_by"),
        created_at=data.get("created_at"),
        confirmed_by=data.get("confirmed_by"),
        confirmed_at=data.get("confirmed_at"),
    )


def _parse_approval(data: dict[str, Any]) -> ApprovalRequest:
    asset_id = data.get("asset_id")
    return ApprovalRequest(
        owner=data["owner"],
        grantee=data["grantee"],
        asset_id=int(asset_id) if asset_id is not None else None,
        approve_all=bool(data.get("approve_all", False)),
        state=_parse_state(data),
        submitted_by=data.get("submitted_by"),
        created_at=data.get("created_at"),
        confirmed_by=data.get("confirmed_by"),
        confirmed_at=data.get("confirmed_at"),
    )


def _audit_fields(req: TransferRequest | ApprovalRequest) -> dict[str, Any]:
    data: dict[str, Any] = {
        "state": req.state.value,
        "created_at": req.created_at,
    }
    if req.submitted_by:
        data["submitted_by"] = req.submitted_by
    if req.confirmed_by:
        data["confirmed_by"] = req.confirmed_by
    if req.confirmed_at:
        data["confirmed_at"] = req.confirmed_at
    return data


def _serialize_transfer(req: TransferRequest) -> dict[str, Any]:
    return {
        "index": req.request_index,
        "from": req.from_address,
        "to": req.to_address,
        "asset_id": req.asset_id,
        **_audit_fields(req),
    }


def _serialize_approval(req: ApprovalRequest) -> dict[str, Any]:
    data: dict[str, Any] = {
        "index": req.request_index,
        "owner": req.owner,
        "grantee": req.grantee,
        "approve_all": req.approve_all,
    }
    if not req.approve_all:
        data["asset_id"] = req.asset_id
    data.update(_audit_fields(req))
    return data
