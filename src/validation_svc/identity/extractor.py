"""Identity extraction from requests."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Callable

from starlette.requests import Request

from ..requests.types import normalize_address
from ..telemetry.events import CallerIdentity


logger = logging.getLogger(__name__)


@dataclass
class IdentityExtractor:
    """
    Extracts the caller's account address from HTTP requests.

    Tries, in order:
    1. Custom extractor (if configured)
    2. JWT Bearer token (address claim, then subject)
    3. Explicit address header set by a trusted gateway
    4. Anonymous

    Token signatures are verified by the gateway in front of the service,
    not here.
    """
    jwt_header: str = "Authorization"
    address_header: str = "X-Caller-Address"
    app_id_header: str = "X-App-ID"

    # JWT claim mappings
    jwt_address_claim: str = "address"
    jwt_subject_claim: str = "sub"

    custom_extractor: Callable[[Request], CallerIdentity | None] | None = None

    def extract(self, request: Request) -> CallerIdentity:
        """Extract caller identity from request."""
        if self.custom_extractor:
            identity = self.custom_extractor(request)
            if identity:
                return identity

        identity = self._extract_jwt(request)
        if identity:
            return identity

        address = request.headers.get(self.address_header)
        if address:
            return CallerIdentity(
                address=normalize_address(address),
                app_id=request.headers.get(self.app_id_header),
            )

        return CallerIdentity(app_id=request.headers.get(self.app_id_header))

    def _extract_jwt(self, request: Request) -> CallerIdentity | None:
        """Extract identity from a JWT Bearer token payload."""
        auth_header = request.headers.get(self.jwt_header, "")
        if not auth_header.startswith("Bearer "):
            return None

        parts = auth_header[7:].split(".")
        if len(parts) != 3:
            return None

        payload_b64 = parts[1]
        padding = 4 - len(payload_b64) % 4
        if padding != 4:
            payload_b64 += "=" * padding

        try:
            payload = json.loads(base64.urlsafe_b64decode(payload_b64))
        except (binascii.Error, ValueError) as e:
            logger.debug(f"Failed to decode JWT payload: {e}")
            return None

        if not isinstance(payload, dict):
            return None

        address = payload.get(self.jwt_address_claim) or payload.get(self.jwt_subject_claim)
        if not address:
            return None

        return CallerIdentity(
            address=normalize_address(address),
            app_id=request.headers.get(self.app_id_header),
            claims=payload,
        )


_default_extractor = IdentityExtractor()


def extract_identity(request: Request) -> CallerIdentity:
    """Extract identity using default extractor."""
    return _default_extractor.extract(request)
