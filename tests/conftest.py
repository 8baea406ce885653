"""Shared fixtures for validation service tests."""

import pytest

from validation_svc.ledger.memory import InMemoryLedger
from validation_svc.requests.policy import AllowListPolicy
from validation_svc.service import ValidationService

from tests.addresses import ALICE, BOB, VALIDATOR


@pytest.fixture
def ledger() -> InMemoryLedger:
    """Ledger with assets 7 and 8 owned by Alice, 9 owned by Bob."""
    ledger = InMemoryLedger()
    ledger.mint(ALICE, 7)
    ledger.mint(ALICE, 8)
    ledger.mint(BOB, 9)
    return ledger


@pytest.fixture
def policy() -> AllowListPolicy:
    return AllowListPolicy.of([VALIDATOR])


@pytest.fixture
def service(ledger, policy) -> ValidationService:
    """Validation service over the seeded ledger, no notifications."""
    return ValidationService(ledger=ledger, policy=policy)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "scenario: end-to-end protocol scenarios")
