"""Errors raised by request intake, confirmation and lookup."""

from __future__ import annotations


class ValidationError(Exception):
    """Base class for all validation protocol errors."""
    code = "validation_error"


class InvalidTransferRequest(ValidationError):
    """Raised when `from` is not the current owner of the asset."""
    code = "invalid_transfer_request"


class InvalidRecipient(ValidationError):
    """Raised when a transfer targets the null address."""
    code = "invalid_recipient"


class SelfApprovalRejected(ValidationError):
    """Raised when an owner tries to make itself an operator."""
    code = "self_approval_rejected"


class CallerNotAuthorized(ValidationError):
    """Raised when a direct transfer caller is neither owner nor approved."""
    code = "caller_not_authorized"


class UnauthorizedValidator(ValidationError):
    """Raised when the validator policy rejects the confirming caller."""
    code = "unauthorized_validator"


class AlreadyValidated(ValidationError):
    """Raised when a request has already been confirmed."""
    code = "already_validated"

    def __init__(self, kind: str, request_id: int):
        super().__init__(f"{kind} request {request_id} is already validated")
        self.kind = kind
        self.request_id = request_id


class OwnershipChanged(ValidationError):
    """Raised when a single-asset approval no longer matches the owner."""
    code = "ownership_changed"

    def __init__(self, request_id: int, expected: str, actual: str):
        super().__init__(
            f"Approval request {request_id}: asset owner changed "
            f"from {expected} to {actual}"
        )
        self.request_id = request_id
        self.expected = expected
        self.actual = actual


class OutOfRange(ValidationError, IndexError):
    """Raised when a request index has not been assigned yet."""
    code = "out_of_range"

    def __init__(self, kind: str, request_id: int, count: int):
        super().__init__(f"{kind} request {request_id} out of range (total: {count})")
        self.kind = kind
        self.request_id = request_id
        self.count = count
