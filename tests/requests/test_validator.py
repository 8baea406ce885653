"""Tests for confirming pending transfer and approval requests."""

import pytest

from validation_svc.ledger.base import AssetNotFound
from validation_svc.requests.errors import (
    AlreadyValidated,
    OutOfRange,
    OwnershipChanged,
    UnauthorizedValidator,
)
from validation_svc.requests.policy import AllowAnyPolicy
from validation_svc.requests.types import RequestState
from validation_svc.service import ValidationService

from tests.addresses import ALICE, BOB, CAROL, VALIDATOR


class TestConfirmTransfer:
    def test_confirm_moves_asset(self, service, ledger):
        service.submit_transfer(ALICE, ALICE, BOB, 7)

        confirmed = service.confirm_transfer(0, VALIDATOR)

        assert ledger.owner_of(7) == BOB
        assert confirmed.valid is True
        assert confirmed.state is RequestState.CONFIRMED
        assert confirmed.confirmed_by == VALIDATOR
        assert confirmed.confirmed_at is not None
        assert service.request_by_id(0) == confirmed

    def test_second_confirm_fails_and_leaves_record(self, service):
        service.submit_transfer(ALICE, ALICE, BOB, 7)
        first = service.confirm_transfer(0, VALIDATOR)

        with pytest.raises(AlreadyValidated):
            service.confirm_transfer(0, VALIDATOR)

        assert service.request_by_id(0) == first

    def test_unknown_index_out_of_range(self, service):
        with pytest.raises(OutOfRange):
            service.confirm_transfer(0, VALIDATOR)

    def test_unauthorized_validator_rejected(self, service, ledger):
        service.submit_transfer(ALICE, ALICE, BOB, 7)

        with pytest.raises(UnauthorizedValidator):
            service.confirm_transfer(0, ALICE)
        with pytest.raises(UnauthorizedValidator):
            service.confirm_transfer(0, None)

        assert ledger.owner_of(7) == ALICE
        assert service.request_by_id(0).valid is False

    def test_validator_address_case_is_ignored(self, service):
        service.submit_transfer(ALICE, ALICE, BOB, 7)
        confirmed = service.confirm_transfer(0, VALIDATOR.replace("f", "F"))
        assert confirmed.confirmed_by == VALIDATOR

    def test_confirm_does_not_recheck_ownership(self, service, ledger):
        """Transfer confirmation applies the stored request even if the owner changed."""
        ledger.raw_approve_for_all(ALICE, CAROL, True)
        service.submit_transfer(ALICE, ALICE, BOB, 7)

        # Operator moves the asset away while the request is pending
        service.submit_transfer(CAROL, ALICE, CAROL, 7)
        assert ledger.owner_of(7) == CAROL

        confirmed = service.confirm_transfer(0, VALIDATOR)

        assert confirmed.valid is True
        assert ledger.owner_of(7) == BOB

    def test_ledger_failure_leaves_request_pending(self, service, ledger):
        service.submit_transfer(ALICE, ALICE, BOB, 7)
        ledger.burn(7)

        with pytest.raises(AssetNotFound):
            service.confirm_transfer(0, VALIDATOR)

        assert service.request_by_id(0).valid is False

    def test_confirmations_on_different_requests_are_independent(self, service, ledger):
        service.submit_transfer(ALICE, ALICE, BOB, 7)
        service.submit_transfer(ALICE, ALICE, CAROL, 8)

        service.confirm_transfer(1, VALIDATOR)

        assert ledger.owner_of(8) == CAROL
        assert ledger.owner_of(7) == ALICE
        assert service.request_by_id(0).valid is False


class TestConfirmApproval:
    def test_single_asset_approval_granted(self, service, ledger):
        service.submit_approval(ALICE, CAROL, 7)

        confirmed = service.confirm_approval(0, VALIDATOR)

        assert confirmed.valid is True
        assert ledger.get_approved(7) == CAROL

    def test_ownership_changed_blocks_confirmation(self, service, ledger):
        service.submit_approval(ALICE, CAROL, 7)
        ledger.raw_transfer(ALICE, BOB, 7)

        with pytest.raises(OwnershipChanged) as exc_info:
            service.confirm_approval(0, VALIDATOR)

        assert exc_info.value.expected == ALICE
        assert exc_info.value.actual == BOB
        assert service.approval_by_id(0).valid is False
        assert ledger.get_approved(7) is None

    def test_stale_approval_confirmable_after_ownership_returns(self, service, ledger):
        service.submit_approval(ALICE, CAROL, 7)
        ledger.raw_transfer(ALICE, BOB, 7)
        with pytest.raises(OwnershipChanged):
            service.confirm_approval(0, VALIDATOR)

        ledger.raw_transfer(BOB, ALICE, 7)
        confirmed = service.confirm_approval(0, VALIDATOR)

        assert confirmed.valid is True
        assert ledger.get_approved(7) == CAROL

    def test_blanket_approval_granted(self, service, ledger):
        service.submit_approval_for_all(ALICE, CAROL, True)

        confirmed = service.confirm_approval(0, VALIDATOR)

        assert confirmed.approve_all is True
        assert ledger.is_approved_for_all(ALICE, CAROL) is True

    def test_blanket_approval_ignores_asset_ownership(self, service, ledger):
        service.submit_approval_for_all(ALICE, CAROL, True)
        ledger.raw_transfer(ALICE, BOB, 7)
        ledger.raw_transfer(ALICE, BOB, 8)

        service.confirm_approval(0, VALIDATOR)

        assert ledger.is_approved_for_all(ALICE, CAROL) is True

    def test_second_confirm_fails(self, service):
        service.submit_approval(ALICE, CAROL, 7)
        service.confirm_approval(0, VALIDATOR)

        with pytest.raises(AlreadyValidated):
            service.confirm_approval(0, VALIDATOR)

    def test_out_of_range(self, service):
        service.submit_approval(ALICE, CAROL, 7)
        with pytest.raises(OutOfRange):
            service.confirm_approval(1, VALIDATOR)


class TestAllowAnyPolicy:
    def test_anonymous_can_confirm(self, ledger):
        service = ValidationService(ledger=ledger, policy=AllowAnyPolicy())
        service.submit_transfer(ALICE, ALICE, BOB, 7)

        confirmed = service.confirm_transfer(0)

        assert confirmed.valid is True
        assert confirmed.confirmed_by is None
        assert ledger.owner_of(7) == BOB


class TestQueries:
    def test_pending_lists_skip_confirmed(self, service):
        service.submit_transfer(ALICE, ALICE, BOB, 7)
        service.submit_transfer(ALICE, ALICE, BOB, 8)
        service.submit_approval(BOB, CAROL, 9)
        service.submit_approval_for_all(ALICE, CAROL, True)
        service.confirm_transfer(0, VALIDATOR)
        service.confirm_approval(1, VALIDATOR)

        assert [r.request_index for r in service.pending_transfers()] == [1]
        assert [r.request_index for r in service.pending_approvals()] == [0]
        assert service.pending_approvals()[0].asset_id == 9

    def test_totals_count_every_request(self, service):
        service.submit_transfer(ALICE, ALICE, BOB, 7)
        service.confirm_transfer(0, VALIDATOR)
        service.submit_approval(BOB, CAROL, 9)

        assert service.total_transfer_requests() == 1
        assert service.total_approval_requests() == 1
        assert service.is_validator_extension() is True
        assert service.stats["transfers"] == {"pending": 0, "confirmed": 1, "total": 1}


@pytest.mark.scenario
class TestScenarios:
    def test_transfer_lifecycle(self, service, ledger):
        assert service.submit_transfer(ALICE, ALICE, BOB, 7) == 0
        assert ledger.owner_of(7) == ALICE

        service.confirm_transfer(0, VALIDATOR)
        assert ledger.owner_of(7) == BOB
        assert service.request_by_id(0).valid is True

        with pytest.raises(AlreadyValidated):
            service.confirm_transfer(0, VALIDATOR)

    def test_operator_grant_lifecycle(self, service, ledger):
        index = service.submit_approval_for_all(ALICE, CAROL, True)
        assert service.approval_by_id(index).approve_all is True

        service.confirm_approval(index, VALIDATOR)
        assert ledger.is_approved_for_all(ALICE, CAROL) is True

        # The new operator now transfers without validation
        assert service.submit_transfer(CAROL, ALICE, BOB, 8) is None
        assert ledger.owner_of(8) == BOB

    def test_query_past_end(self, service):
        service.submit_transfer(ALICE, ALICE, BOB, 7)
        service.submit_transfer(ALICE, ALICE, BOB, 8)
        service.submit_transfer(BOB, BOB, ALICE, 9)

        with pytest.raises(OutOfRange):
            service.request_by_id(99)
