"""Pydantic models for the validation API."""

from __future__ import annotations

from pydantic import BaseModel, Field


# =============================================================================
# Request Body Models
# =============================================================================

class SubmitTransferBody(BaseModel):
    """Body for submitting a transfer. The caller comes from identity headers."""
    from_address: str
    to_address: str
    asset_id: int = Field(ge=0)


class SubmitApprovalBody(BaseModel):
    """Body for a single-asset approval. The owner is the caller."""
    grantee: str
    asset_id: int = Field(ge=0)


class SubmitOperatorBody(BaseModel):
    """Body for granting or revoking blanket permission. The owner is the caller."""
    operator: str
    grant: bool = True


# =============================================================================
# Response Models
# =============================================================================

class SubmitResponse(BaseModel):
    """Outcome of an intake call."""
    status: str  # pending | executed
    request_index: int | None = None
    message: str = ""


class TransferRequestModel(BaseModel):
    """A recorded transfer request."""
    request_index: int
    from_address: str
    to_address: str
    asset_id: int
    state: str
    valid: bool
    submitted_by: str | None = None
    created_at: str | None = None
    confirmed_by: str | None = None
    confirmed_at: str | None = None


class ApprovalRequestModel(BaseModel):
    """A recorded approval request."""
    request_index: int
    owner: str
    grantee: str
    asset_id: int | None = None
    approve_all: bool = False
    state: str
    valid: bool
    submitted_by: str | None = None
    created_at: str | None = None
    confirmed_by: str | None = None
    confirmed_at: str | None = None


class TransferListResponse(BaseModel):
    requests: list[TransferRequestModel]
    total: int
    by_state: dict[str, int] = Field(default_factory=dict)


class ApprovalListResponse(BaseModel):
    requests: list[ApprovalRequestModel]
    total: int
    by_state: dict[str, int] = Field(default_factory=dict)


class CapabilitiesResponse(BaseModel):
    """Feature probe for clients."""
    is_validator_extension: bool
    total_transfer_requests: int
    total_approval_requests: int


class AssetResponse(BaseModel):
    """Ownership read-out for a single asset."""
    asset_id: int
    owner: str
    approved: str | None = None
