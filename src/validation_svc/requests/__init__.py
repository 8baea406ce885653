"""
Transfer & Approval Validation

Transfer and approval intents are recorded as pending requests in
append-only logs. An authorized validator confirms each request once,
at which point its effect is applied to the ownership ledger.
"""

from .types import (
    NULL_ADDRESS,
    ApprovalRequest,
    RequestKind,
    RequestState,
    TransferRequest,
    normalize_address,
)
from .errors import (
    AlreadyValidated,
    CallerNotAuthorized,
    InvalidRecipient,
    InvalidTransferRequest,
    OutOfRange,
    OwnershipChanged,
    SelfApprovalRejected,
    UnauthorizedValidator,
    ValidationError,
)
from .log import RequestLog
from .policy import AllowAnyPolicy, AllowListPolicy, ValidatorPolicy
from .intake import RequestIntake, should_defer
from .validator import RequestValidator
from .loader import load_logs_from_yaml, replay_confirmed, save_logs_to_yaml

__all__ = [
    "NULL_ADDRESS",
    "ApprovalRequest",
    "RequestKind",
    "RequestState",
    "TransferRequest",
    "normalize_address",
    "AlreadyValidated",
    "CallerNotAuthorized",
    "InvalidRecipient",
    "InvalidTransferRequest",
    "OutOfRange",
    "OwnershipChanged",
    "SelfApprovalRejected",
    "UnauthorizedValidator",
    "ValidationError",
    "RequestLog",
    "AllowAnyPolicy",
    "AllowListPolicy",
    "ValidatorPolicy",
    "RequestIntake",
    "should_defer",
    "RequestValidator",
    "load_logs_from_yaml",
    "replay_confirmed",
    "save_logs_to_yaml",
]
