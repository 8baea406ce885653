"""Tests for caller identity extraction."""

import base64
import json

from starlette.requests import Request

from validation_svc.identity import IdentityExtractor, extract_identity

from tests.addresses import ALICE, BOB


def _request(headers: dict) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


def _token(payload) -> str:
    body = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")
    return f"Bearer e30.{body}.sig"


class TestExtractIdentity:
    def test_address_header_normalized(self):
        identity = extract_identity(_request({"X-Caller-Address": ALICE.upper().replace("0X", "0x")}))
        assert identity.address == ALICE

    def test_app_id(self):
        identity = extract_identity(_request({"X-Caller-Address": ALICE, "X-App-ID": "wallet"}))
        assert identity.app_id == "wallet"

    def test_jwt_address_claim_wins(self):
        identity = extract_identity(_request({"Authorization": _token({"address": ALICE, "sub": BOB})}))
        assert identity.address == ALICE
        assert identity.claims["sub"] == BOB

    def test_jwt_subject_fallback(self):
        identity = extract_identity(_request({"Authorization": _token({"sub": BOB})}))
        assert identity.address == BOB

    def test_jwt_takes_precedence_over_header(self):
        identity = extract_identity(_request({
            "Authorization": _token({"sub": BOB}),
            "X-Caller-Address": ALICE,
        }))
        assert identity.address == BOB

    def test_malformed_token_falls_back_to_header(self):
        identity = extract_identity(_request({
            "Authorization": "Bearer not.a-valid-payload!.sig",
            "X-Caller-Address": ALICE,
        }))
        assert identity.address == ALICE

    def test_non_object_payload_ignored(self):
        identity = extract_identity(_request({"Authorization": _token(["x"])}))
        assert identity.address is None

    def test_anonymous(self):
        identity = extract_identity(_request({}))
        assert identity.address is None

    def test_custom_extractor(self):
        from validation_svc.telemetry.events import CallerIdentity

        extractor = IdentityExtractor(custom_extractor=lambda request: CallerIdentity(address=BOB))
        assert extractor.extract(_request({"X-Caller-Address": ALICE})).address == BOB
