"""Tests for application startup, configuration and health."""

import yaml

import pytest
from fastapi.testclient import TestClient

from validation_svc.config import Config
from validation_svc.main import app

from tests.addresses import ALICE, BOB, VALIDATOR


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "telemetry": {
            "sink_type": "file",
            "sink_config": {"path": str(tmp_path / "events.jsonl")},
            "flush_interval_seconds": 0.05,
        },
        "validation": {
            "validators": [VALIDATOR],
            "requests_file": str(tmp_path / "requests.yaml"),
        },
        "ledger": {"assets": {"7": ALICE}},
    }))
    return path


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.server.port == 8060
        assert config.validation.validators == []
        assert config.validation.allow_any_validator is False
        assert config.telemetry.sink_type == "console"
        assert config.telemetry.flush_on_confirm is True

    def test_from_yaml(self, config_file):
        config = Config.from_yaml(str(config_file))
        assert config.validation.validators == [VALIDATOR]
        assert config.ledger.assets == {7: ALICE}
        assert config.telemetry.sink_type == "file"


class TestApp:
    def test_end_to_end(self, config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("VALIDATION_CONFIG", str(config_file))

        with TestClient(app) as client:
            health = client.get("/health").json()
            assert health["status"] == "healthy"
            assert health["ledger"]["assets"] == 1

            client.post(
                "/validation/transfers",
                json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
                headers={"X-Caller-Address": ALICE},
            )
            response = client.post(
                "/validation/transfers/0/confirm",
                headers={"X-Caller-Address": VALIDATOR},
            )
            assert response.status_code == 200
            assert client.get("/validation/assets/7").json()["owner"] == BOB

        saved = yaml.safe_load((tmp_path / "requests.yaml").read_text())
        assert saved["transfers"][0]["state"] == "confirmed"

        events = (tmp_path / "events.jsonl").read_text().splitlines()
        assert len(events) == 2

    def test_restart_restores_requests(self, config_file, monkeypatch):
        monkeypatch.setenv("VALIDATION_CONFIG", str(config_file))

        with TestClient(app) as client:
            client.post(
                "/validation/transfers",
                json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
                headers={"X-Caller-Address": ALICE},
            )

        with TestClient(app) as client:
            data = client.get("/validation/transfers/0").json()
            assert data["state"] == "pending"
            assert client.get("/validation/capabilities").json()["total_transfer_requests"] == 1

    def test_restart_keeps_confirmed_transfer_on_ledger(self, config_file, monkeypatch):
        monkeypatch.setenv("VALIDATION_CONFIG", str(config_file))

        with TestClient(app) as client:
            client.post(
                "/validation/transfers",
                json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
                headers={"X-Caller-Address": ALICE},
            )
            client.post("/validation/transfers/0/confirm", headers={"X-Caller-Address": VALIDATOR})

        with TestClient(app) as client:
            assert client.get("/validation/transfers/0").json()["state"] == "confirmed"
            assert client.get("/validation/assets/7").json()["owner"] == BOB

            resubmit = client.post(
                "/validation/transfers",
                json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
                headers={"X-Caller-Address": ALICE},
            )
            assert resubmit.status_code == 400
            assert resubmit.json()["detail"]["error"] == "invalid_transfer_request"

    def test_restart_keeps_operator_revocation(self, config_file, monkeypatch):
        monkeypatch.setenv("VALIDATION_CONFIG", str(config_file))

        with TestClient(app) as client:
            grant = client.post(
                "/validation/approvals/operators",
                json={"operator": BOB},
                headers={"X-Caller-Address": ALICE},
            )
            client.post(
                f"/validation/approvals/{grant.json()['request_index']}/confirm",
                headers={"X-Caller-Address": VALIDATOR},
            )
            client.post(
                "/validation/approvals/operators",
                json={"operator": BOB, "grant": False},
                headers={"X-Caller-Address": ALICE},
            )

        with TestClient(app) as client:
            response = client.post(
                "/validation/transfers",
                json={"from_address": ALICE, "to_address": BOB, "asset_id": 7},
                headers={"X-Caller-Address": BOB},
            )
            assert response.status_code == 403
            assert client.get("/validation/assets/7").json()["owner"] == ALICE
