"""FastAPI routes for transfer and approval validation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from ..identity.extractor import extract_identity
from ..ledger.base import AssetNotFound, LedgerError
from ..service import ValidationService
from .errors import (
    AlreadyValidated,
    CallerNotAuthorized,
    OutOfRange,
    OwnershipChanged,
    UnauthorizedValidator,
    ValidationError,
)
from .loader import save_logs_to_yaml
from .models import (
    ApprovalListResponse,
    ApprovalRequestModel,
    AssetResponse,
    CapabilitiesResponse,
    SubmitApprovalBody,
    SubmitOperatorBody,
    SubmitResponse,
    SubmitTransferBody,
    TransferListResponse,
    TransferRequestModel,
)
from .types import ApprovalRequest, RequestState, TransferRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/validation", tags=["Validation"])

# Configuration - set during app startup
_service: ValidationService | None = None
_yaml_path: str | None = None
_auto_save_enabled: bool = False

_STATUS_CODES: dict[type[Exception], int] = {
    OutOfRange: 404,
    AssetNotFound: 404,
    AlreadyValidated: 409,
    OwnershipChanged: 409,
    CallerNotAuthorized: 403,
    UnauthorizedValidator: 403,
}


def configure(
    service: ValidationService,
    yaml_path: str | None = None,
    auto_save: bool = False,
) -> None:
    """Configure the routes with the validation service."""
    global _service, _yaml_path, _auto_save_enabled
    _service = service
    _yaml_path = yaml_path
    _auto_save_enabled = auto_save


def _get_service() -> ValidationService:
    if _service is None:
        raise HTTPException(status_code=503, detail="Validation module not initialized")
    return _service


def _to_http(exc: Exception) -> HTTPException:
    """Map protocol and ledger errors to HTTP errors."""
    for error_type, status_code in _STATUS_CODES.items():
        if isinstance(exc, error_type):
            break
    else:
        status_code = 400
    code = getattr(exc, "code", "ledger_error")
    return HTTPException(status_code=status_code, detail={"error": code, "message": str(exc)})


def _auto_save() -> None:
    """Persist the logs and ledger state after mutations."""
    if _auto_save_enabled and _yaml_path and _service:
        try:
            save_logs_to_yaml(_yaml_path, _service.transfers, _service.approvals, _service.ledger)
        except OSError as e:
            logger.error(f"Auto-save failed: {e}")


def _caller_address(request: Request) -> str:
    caller = extract_identity(request)
    if caller.address is None:
        raise HTTPException(status_code=401, detail="Caller address required")
    return caller.address


def _transfer_to_model(req: TransferRequest) -> TransferRequestModel:
    return TransferRequestModel(
        request_index=req.request_index,
        from_address=req.from_address,
        to_address=req.to_address,
        asset_id=req.asset_id,
        state=req.state.value,
        valid=req.valid,
        submitted_by=req.submitted_by,
        created_at=req.created_at,
        confirmed_by=req.confirmed_by,
        confirmed_at=req.confirmed_at,
    )


def _approval_to_model(req: ApprovalRequest) -> ApprovalRequestModel:
    return ApprovalRequestModel(
        request_index=req.request_index,
        owner=req.owner,
        grantee=req.grantee,
        asset_id=req.asset_id,
        approve_all=req.approve_all,
        state=req.state.value,
        valid=req.valid,
        submitted_by=req.submitted_by,
        created_at=req.created_at,
        confirmed_by=req.confirmed_by,
        confirmed_at=req.confirmed_at,
    )


def _parse_state(status: str | None) -> RequestState | None:
    if status is None:
        return None
    try:
        return RequestState(status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")


# =============================================================================
# Capabilities / Assets
# =============================================================================

@router.get("/capabilities", response_model=CapabilitiesResponse)
async def capabilities():
    """Feature probe: whether this service validates transfers."""
    service = _get_service()
    return CapabilitiesResponse(
        is_validator_extension=service.is_validator_extension(),
        total_transfer_requests=service.total_transfer_requests(),
        total_approval_requests=service.total_approval_requests(),
    )


@router.get("/assets/{asset_id}", response_model=AssetResponse)
async def get_asset(asset_id: int):
    """Current owner and single-asset approval from the ledger."""
    service = _get_service()
    try:
        return AssetResponse(
            asset_id=asset_id,
            owner=service.ledger.owner_of(asset_id),
            approved=service.ledger.get_approved(asset_id),
        )
    except LedgerError as e:
        raise _to_http(e)


# =============================================================================
# Transfers
# =============================================================================

@router.post("/transfers", response_model=SubmitResponse)
async def submit_transfer(body: SubmitTransferBody, request: Request):
    """
    Submit an ownership transfer.

    Owner-initiated transfers are recorded as pending. Transfers by an
    approved operator are executed immediately.
    """
    service = _get_service()
    caller = _caller_address(request)

    try:
        index = service.submit_transfer(caller, body.from_address, body.to_address, body.asset_id)
    except (ValidationError, LedgerError) as e:
        raise _to_http(e)

    _auto_save()
    if index is None:
        return SubmitResponse(status="executed", message=f"Asset {body.asset_id} transferred")

    return SubmitResponse(
        status="pending",
        request_index=index,
        message="Transfer recorded, awaiting validation",
    )


@router.get("/transfers", response_model=TransferListResponse)
async def list_transfers(status: str | None = None):
    """List transfer requests, optionally filtered by state."""
    service = _get_service()
    state = _parse_state(status)

    if state is RequestState.PENDING:
        requests = service.pending_transfers()
    else:
        requests = service.transfers.all_entries()
        if state is not None:
            requests = [r for r in requests if r.state is state]

    return TransferListResponse(
        requests=[_transfer_to_model(r) for r in requests],
        total=len(requests),
        by_state=service.transfers.count_by_state(),
    )


@router.get("/transfers/{request_id}", response_model=TransferRequestModel)
async def get_transfer(request_id: int):
    service = _get_service()
    try:
        return _transfer_to_model(service.request_by_id(request_id))
    except ValidationError as e:
        raise _to_http(e)


@router.post("/transfers/{request_id}/confirm", response_model=TransferRequestModel)
async def confirm_transfer(request_id: int, request: Request):
    """Confirm a pending transfer; the asset moves on success."""
    service = _get_service()
    caller = extract_identity(request).address

    try:
        confirmed = service.confirm_transfer(request_id, caller)
    except (ValidationError, LedgerError) as e:
        raise _to_http(e)

    _auto_save()
    return _transfer_to_model(confirmed)


# =============================================================================
# Approvals
# =============================================================================

@router.post("/approvals", response_model=SubmitResponse)
async def submit_approval(body: SubmitApprovalBody, request: Request):
    """Request a single-asset approval on behalf of the caller."""
    service = _get_service()
    owner = _caller_address(request)

    try:
        index = service.submit_approval(owner, body.grantee, body.asset_id)
    except (ValidationError, LedgerError) as e:
        raise _to_http(e)

    _auto_save()
    return SubmitResponse(
        status="pending",
        request_index=index,
        message="Approval recorded, awaiting validation",
    )


@router.post("/approvals/operators", response_model=SubmitResponse)
async def submit_operator(body: SubmitOperatorBody, request: Request):
    """Grant (deferred) or revoke (immediate) blanket permission."""
    service = _get_service()
    owner = _caller_address(request)

    try:
        index = service.submit_approval_for_all(owner, body.operator, body.grant)
    except (ValidationError, LedgerError) as e:
        raise _to_http(e)

    _auto_save()
    if index is None:
        return SubmitResponse(status="executed", message=f"Operator {body.operator} revoked")

    return SubmitResponse(
        status="pending",
        request_index=index,
        message="Operator grant recorded, awaiting validation",
    )


@router.get("/approvals", response_model=ApprovalListResponse)
async def list_approvals(status: str | None = None):
    """List approval requests, optionally filtered by state."""
    service = _get_service()
    state = _parse_state(status)

    if state is RequestState.PENDING:
        requests = service.pending_approvals()
    else:
        requests = service.approvals.all_entries()
        if state is not None:
            requests = [r for r in requests if r.state is state]

    return ApprovalListResponse(
        requests=[_approval_to_model(r) for r in requests],
        total=len(requests),
        by_state=service.approvals.count_by_state(),
    )


@router.get("/approvals/{request_id}", response_model=ApprovalRequestModel)
async def get_approval(request_id: int):
    service = _get_service()
    try:
        return _approval_to_model(service.approval_by_id(request_id))
    except ValidationError as e:
        raise _to_http(e)


@router.post("/approvals/{request_id}/confirm", response_model=ApprovalRequestModel)
async def confirm_approval(request_id: int, request: Request):
    """Confirm a pending approval; the permission is granted on success."""
    service = _get_service()
    caller = extract_identity(request).address

    try:
        confirmed = service.confirm_approval(request_id, caller)
    except (ValidationError, LedgerError) as e:
        raise _to_http(e)

    _auto_save()
    return _approval_to_model(confirmed)


# =============================================================================
# Save
# =============================================================================

@router.post("/save")
async def save_requests():
    """Manually save both request logs to YAML."""
    service = _get_service()

    if not _yaml_path:
        raise HTTPException(status_code=400, detail="No YAML path configured for requests")

    count = save_logs_to_yaml(_yaml_path, service.transfers, service.approvals, service.ledger)
    return {"success": True, "count": count, "message": f"Saved {count} requests"}
