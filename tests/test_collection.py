"""Tests for the reading collection state machine."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from rentals.models.enums import (
    ApprovalStatus,
    CollectionMode,
    DistributionMethod,
    MeterScope,
    SubmittedBy,
)
from rentals.schemas.meter import CanonicalMeter, MeterConfig
from rentals.services.collection import (
    InvalidTransitionError,
    PhotoRequiredError,
    SubmissionNotAllowedError,
    collection_progress,
    ensure_open,
    is_billable,
    period_status,
    requires_reading,
    review,
    submission_status,
)


def _config(
    mode: CollectionMode = CollectionMode.TENANT_PHOTO,
    requires_photo: bool = True,
    scope: MeterScope = MeterScope.APARTMENT,
) -> MeterConfig:
    return MeterConfig(
        scope=scope,
        distribution_method=DistributionMethod.PER_CONSUMPTION,
        price_per_unit=Decimal("1"),
        collection_mode=mode,
        requires_photo=requires_photo,
    )


class TestSubmission:
    """Tests for the initial status of a submission."""

    def test_landlord_entry_is_approved(self) -> None:
        """Landlord readings need no review, in either collection mode."""
        for mode in CollectionMode:
            assert submission_status(_config(mode), SubmittedBy.LANDLORD) == ApprovalStatus.APPROVED

    def test_tenant_photo_goes_to_review(self) -> None:
        """Tenant submissions with a photo wait for approval."""
        status = submission_status(_config(), SubmittedBy.TENANT, "https://img/1.jpg")
        assert status == ApprovalStatus.PENDING_APPROVAL

    def test_tenant_without_required_photo(self) -> None:
        """A required photo cannot be skipped."""
        with pytest.raises(PhotoRequiredError):
            submission_status(_config(), SubmittedBy.TENANT, "   ")

    def test_tenant_photo_optional(self) -> None:
        """Meters that do not require a photo accept a bare value."""
        status = submission_status(_config(requires_photo=False), SubmittedBy.TENANT)
        assert status == ApprovalStatus.PENDING_APPROVAL

    def test_tenant_on_landlord_only_meter(self) -> None:
        """Tenants cannot submit readings for landlord-read meters."""
        with pytest.raises(SubmissionNotAllowedError):
            submission_status(_config(CollectionMode.LANDLORD_ONLY), SubmittedBy.TENANT, "x")

    def test_fixed_fee_takes_no_readings(self) -> None:
        """Readings on fixed fees are refused."""
        config = MeterConfig(scope=MeterScope.NONE, distribution_method=DistributionMethod.FIXED_SPLIT)
        with pytest.raises(SubmissionNotAllowedError):
            submission_status(config, SubmittedBy.LANDLORD)


class TestReview:
    """Tests for landlord review."""

    def test_approve(self) -> None:
        """Approving a pending reading makes it billable."""
        status = review(ApprovalStatus.PENDING_APPROVAL, approve=True)
        assert status == ApprovalStatus.APPROVED
        assert is_billable(status)

    def test_reject(self) -> None:
        """Rejected readings are not billable."""
        status = review(ApprovalStatus.PENDING_APPROVAL, approve=False)
        assert status == ApprovalStatus.REJECTED
        assert not is_billable(status)

    @pytest.mark.parametrize("state", ["approved", "rejected", "not_submitted"])
    def test_review_only_from_pending(self, state: str) -> None:
        """Settled readings cannot be reviewed again."""
        with pytest.raises(InvalidTransitionError, match=state):
            review(state, approve=True)


class TestPeriodState:
    """Tests for per-period state lookups."""

    def test_latest_matching_reading_wins(self) -> None:
        """The newest reading of the period decides its state."""
        readings = [
            SimpleNamespace(period="2024-03", approval_status="pending_approval"),
            SimpleNamespace(period="2024-03", approval_status="rejected"),
        ]
        assert period_status(readings, "2024-03") == ApprovalStatus.PENDING_APPROVAL

    def test_no_reading(self) -> None:
        """A period without readings is not submitted."""
        readings = [SimpleNamespace(period="2024-02", approval_status="approved")]
        assert period_status(readings, "2024-03") == ApprovalStatus.NOT_SUBMITTED

    def test_open_states(self) -> None:
        """New submissions are accepted until the period is pending or approved."""
        ensure_open(ApprovalStatus.NOT_SUBMITTED)
        ensure_open(ApprovalStatus.REJECTED)
        for state in (ApprovalStatus.APPROVED, ApprovalStatus.PENDING_APPROVAL):
            with pytest.raises(InvalidTransitionError):
                ensure_open(state)


class TestCollectionProgress:
    """Tests for collection_progress()."""

    def test_progress(self) -> None:
        """Missing and pending meters are listed by name; fixed fees are skipped."""

        def meter(id: int, name: str, scope: MeterScope = MeterScope.APARTMENT) -> CanonicalMeter:
            return CanonicalMeter(
                id=id,
                name=name,
                address_id=1,
                scope=scope,
                distribution_method=DistributionMethod.PER_CONSUMPTION,
            )

        meters = [
            meter(1, "Cold water"),
            meter(2, "Hot water"),
            meter(3, "Electricity"),
            meter(4, "Internet", MeterScope.NONE),
        ]
        progress = collection_progress(
            meters,
            {1: ApprovalStatus.APPROVED, 2: ApprovalStatus.PENDING_APPROVAL},
        )
        assert progress.missing == ["Electricity"]
        assert progress.pending == ["Hot water"]
        assert progress.complete is False

    def test_complete(self) -> None:
        """Nothing left to collect when every required meter is approved."""
        meters = [
            CanonicalMeter(
                id=1,
                name="Water",
                address_id=1,
                scope=MeterScope.APARTMENT,
                distribution_method=DistributionMethod.PER_CONSUMPTION,
            )
        ]
        assert collection_progress(meters, {1: ApprovalStatus.APPROVED}).complete is True


def test_fixed_splits_need_no_reading() -> None:
    """Only metered methods wait for a reading."""
    metered = _config(scope=MeterScope.BUILDING)
    fixed = metered.model_copy(update={"distribution_method": DistributionMethod.FIXED_SPLIT})
    assert requires_reading(metered)
    assert not requires_reading(fixed)
