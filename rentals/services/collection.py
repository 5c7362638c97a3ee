"""Reading collection state machine.

Per (meter, billing period) a reading moves

    NOT_SUBMITTED -> PENDING_APPROVAL -> APPROVED | REJECTED

Landlord entries skip the pending state and are approved on entry. Tenant
submissions on tenant-photo meters wait for landlord review. Only approved
readings are billed; a rejected one leaves the last approved reading as the
baseline for the next submission.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

from rentals.models.enums import (
    ApprovalStatus,
    CollectionMode,
    DistributionMethod,
    MeterScope,
    SubmittedBy,
)
from rentals.schemas.meter import CanonicalMeter, MeterConfig
from rentals.schemas.meter_reading import CollectionProgress


class ReadingCollectionError(ValueError):
    """A reading submission or review that the state machine refuses."""


class PhotoRequiredError(ReadingCollectionError):
    """Tenant submission without the photo the meter requires."""


class SubmissionNotAllowedError(ReadingCollectionError):
    """Submission from someone who does not collect this meter."""


class InvalidTransitionError(ReadingCollectionError):
    """Submission or review the current period state does not allow."""


class PeriodReading(Protocol):
    """Attributes read from a stored reading."""

    period: str
    approval_status: str


def is_billable(status: ApprovalStatus | str) -> bool:
    """Only approved readings count toward consumption."""
    return status == ApprovalStatus.APPROVED


def submission_status(
    meter: MeterConfig,
    submitted_by: SubmittedBy,
    photo_url: str | None = None,
) -> ApprovalStatus:
    """Status a new submission starts in, or raise if it cannot be accepted."""
    if meter.scope == MeterScope.NONE:
        raise SubmissionNotAllowedError("Fixed fees take no readings")

    if submitted_by == SubmittedBy.LANDLORD:
        # The landlord's own value is authoritative in either mode
        return ApprovalStatus.APPROVED

    if meter.collection_mode != CollectionMode.TENANT_PHOTO:
        raise SubmissionNotAllowedError("This meter is read by the landlord only")
    if meter.requires_photo and not (photo_url and photo_url.strip()):
        raise PhotoRequiredError("A photo of the meter is required")
    return ApprovalStatus.PENDING_APPROVAL


def review(status: ApprovalStatus | str, approve: bool) -> ApprovalStatus:
    """Landlord decision on a pending reading."""
    if status != ApprovalStatus.PENDING_APPROVAL:
        state = ApprovalStatus(status).value
        raise InvalidTransitionError(f"Cannot review a reading in state '{state}'")
    return ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED


def ensure_open(status: ApprovalStatus | str) -> None:
    """Refuse a new submission while the period is settled or under review."""
    if status == ApprovalStatus.APPROVED:
        raise InvalidTransitionError("Reading for this period is already approved")
    if status == ApprovalStatus.PENDING_APPROVAL:
        raise InvalidTransitionError("A reading for this period is awaiting review")


def period_status(readings: Sequence[PeriodReading], period: str) -> ApprovalStatus:
    """Collection state for one period; ``readings`` ordered newest first."""
    for reading in readings:
        if reading.period == period:
            return ApprovalStatus(reading.approval_status)
    return ApprovalStatus.NOT_SUBMITTED


def requires_reading(meter: MeterConfig) -> bool:
    """Fixed fees and fixed splits are charged without a reading."""
    return (
        meter.scope != MeterScope.NONE
        and meter.distribution_method != DistributionMethod.FIXED_SPLIT
    )


def collection_progress(
    meters: Iterable[CanonicalMeter],
    statuses: dict[int, ApprovalStatus],
) -> CollectionProgress:
    """Required meters still missing or pending for a period."""
    missing: list[str] = []
    pending: list[str] = []
    for meter in meters:
        if not requires_reading(meter):
            continue
        status = statuses.get(meter.id, ApprovalStatus.NOT_SUBMITTED)
        if status in (ApprovalStatus.NOT_SUBMITTED, ApprovalStatus.REJECTED):
            missing.append(meter.name)
        elif status == ApprovalStatus.PENDING_APPROVAL:
            pending.append(meter.name)
    return CollectionProgress(
        missing=missing,
        pending=pending,
        complete=not missing and not pending,
    )
