"""Tests for the validation HTTP routes."""

import base64
import json

import pytest
import yaml
from fastapi import FastAPI
from fastapi.testclient import TestClient

from validation_svc.requests import routes

from tests.addresses import ALICE, BOB, CAROL, VALIDATOR


def _as(address: str) -> dict:
    return {"X-Caller-Address": address}


@pytest.fixture
def yaml_path(tmp_path):
    return tmp_path / "requests.yaml"


@pytest.fixture
def client(service, yaml_path):
    app = FastAPI()
    app.include_router(routes.router)
    routes.configure(service=service, yaml_path=str(yaml_path), auto_save=True)
    return TestClient(app)


class TestTransferRoutes:
    def test_submit_pending(self, client, ledger):
        response = client.post(
            "/validation/transfers",
            json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
            headers=_as(ALICE),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["request_index"] == 0
        assert ledger.owner_of(7) == ALICE

    def test_submit_requires_caller(self, client):
        response = client.post(
            "/validation/transfers",
            json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
        )
        assert response.status_code == 401

    def test_operator_transfer_executes(self, client, ledger):
        ledger.raw_approve_for_all(ALICE, CAROL, True)

        response = client.post(
            "/validation/transfers",
            json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
            headers=_as(CAROL),
        )

        assert response.json()["status"] == "executed"
        assert ledger.owner_of(7) == BOB

    def test_executed_transfer_saved_with_ledger(self, client, ledger, yaml_path):
        ledger.raw_approve_for_all(ALICE, CAROL, True)

        client.post(
            "/validation/transfers",
            json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
            headers=_as(CAROL),
        )

        saved = yaml.safe_load(yaml_path.read_text())
        assert saved["transfers"] == []
        assert saved["ledger"]["owners"][7] == BOB

    def test_confirm_and_get(self, client, ledger, yaml_path):
        client.post(
            "/validation/transfers",
            json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
            headers=_as(ALICE),
        )

        response = client.post("/validation/transfers/0/confirm", headers=_as(VALIDATOR))

        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert ledger.owner_of(7) == BOB
        assert client.get("/validation/transfers/0").json()["state"] == "confirmed"
        assert yaml_path.exists()

    def test_confirm_twice_conflict(self, client):
        client.post(
            "/validation/transfers",
            json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
            headers=_as(ALICE),
        )
        client.post("/validation/transfers/0/confirm", headers=_as(VALIDATOR))

        response = client.post("/validation/transfers/0/confirm", headers=_as(VALIDATOR))

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "already_validated"

    def test_confirm_by_non_validator_forbidden(self, client):
        client.post(
            "/validation/transfers",
            json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
            headers=_as(ALICE),
        )
        response = client.post("/validation/transfers/0/confirm", headers=_as(ALICE))
        assert response.status_code == 403

    @pytest.mark.parametrize("body,status,error", [
        ({"from_address": BOB, "to_address": CAROL, "asset_id": 7}, 400, "invalid_transfer_request"),
        ({"from_address": ALICE, "to_address": "0x" + "0" * 40, "asset_id": 7}, 400, "invalid_recipient"),
        ({"from_address": ALICE, "to_address": BOB, "asset_id": 404}, 404, "ledger_error"),
    ])
    def test_submit_errors(self, client, body, status, error):
        response = client.post("/validation/transfers", json=body, headers=_as(body["from_address"]))
        assert response.status_code == status
        assert response.json()["detail"]["error"] == error

    def test_get_out_of_range(self, client):
        response = client.get("/validation/transfers/99")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "out_of_range"

    def test_list_filtered(self, client):
        for asset_id in (7, 8):
            client.post(
                "/validation/transfers",
                json={"from_address": ALICE, "to_address": BOB, "asset_id": asset_id},
                headers=_as(ALICE),
            )
        client.post("/validation/transfers/0/confirm", headers=_as(VALIDATOR))

        data = client.get("/validation/transfers", params={"status": "pending"}).json()

        assert data["total"] == 1
        assert data["requests"][0]["asset_id"] == 8
        assert data["by_state"] == {"pending": 1, "confirmed": 1, "total": 2}

    def test_list_invalid_status(self, client):
        assert client.get("/validation/transfers", params={"status": "nope"}).status_code == 400


class TestApprovalRoutes:
    def test_single_asset_flow(self, client, ledger):
        response = client.post(
            "/validation/approvals",
            json={"grantee": CAROL, "asset_id": 7},
            headers=_as(ALICE),
        )
        assert response.json()["request_index"] == 0

        confirm = client.post("/validation/approvals/0/confirm", headers=_as(VALIDATOR))

        assert confirm.status_code == 200
        assert ledger.get_approved(7) == CAROL
        asset = client.get("/validation/assets/7").json()
        assert asset == {"asset_id": 7, "owner": ALICE, "approved": CAROL}

    def test_ownership_changed_conflict(self, client, ledger):
        client.post("/validation/approvals", json={"grantee": CAROL, "asset_id": 7}, headers=_as(ALICE))
        ledger.raw_transfer(ALICE, BOB, 7)

        response = client.post("/validation/approvals/0/confirm", headers=_as(VALIDATOR))

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "ownership_changed"
        assert client.get("/validation/approvals/0").json()["valid"] is False

    def test_operator_grant_and_revoke(self, client, ledger):
        grant = client.post(
            "/validation/approvals/operators",
            json={"operator": CAROL},
            headers=_as(ALICE),
        )
        assert grant.json()["status"] == "pending"
        client.post(f"/validation/approvals/{grant.json()['request_index']}/confirm", headers=_as(VALIDATOR))
        assert ledger.is_approved_for_all(ALICE, CAROL)

        revoke = client.post(
            "/validation/approvals/operators",
            json={"operator": CAROL, "grant": False},
            headers=_as(ALICE),
        )
        assert revoke.json()["status"] == "executed"
        assert not ledger.is_approved_for_all(ALICE, CAROL)

    def test_self_operator_rejected(self, client):
        response = client.post(
            "/validation/approvals/operators",
            json={"operator": ALICE},
            headers=_as(ALICE),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "self_approval_rejected"


class TestCapabilitiesAndSave:
    def test_capabilities(self, client):
        client.post("/validation/approvals", json={"grantee": CAROL, "asset_id": 7}, headers=_as(ALICE))

        data = client.get("/validation/capabilities").json()

        assert data == {
            "is_validator_extension": True,
            "total_transfer_requests": 0,
            "total_approval_requests": 1,
        }

    def test_manual_save(self, client, yaml_path):
        client.post("/validation/approvals", json={"grantee": CAROL, "asset_id": 7}, headers=_as(ALICE))

        response = client.post("/validation/save")

        assert response.json()["count"] == 1
        assert yaml_path.exists()

    def test_bearer_token_identity(self, client):
        payload = base64.urlsafe_b64encode(json.dumps({"sub": ALICE}).encode()).decode().rstrip("=")
        token = f"e30.{payload}.sig"

        response = client.post(
            "/validation/approvals",
            json={"grantee": CAROL, "asset_id": 7},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert client.get("/validation/approvals/0").json()["owner"] == ALICE
