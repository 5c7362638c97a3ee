"""MeterReading service: submission, review and history."""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import and_
from sqlalchemy.orm import Session

from rentals.models.enums import ApprovalStatus, MeterScope
from rentals.models.meter import Meter
from rentals.models.meter_reading import MeterReading
from rentals.schemas.meter import CanonicalMeter
from rentals.schemas.meter_reading import (
    ApartmentCollectionStatus,
    MeterPeriodStatus,
    MeterReadingResponse,
    ReadingReview,
    ReadingSubmission,
)
from rentals.services import collection
from rentals.services import meter as meter_service
from rentals.services.allocation import consumption
from rentals.services.registry import to_canonical

logger = logging.getLogger(__name__)


def _owner_apartment(meter: CanonicalMeter, apartment_id: int | None) -> int | None:
    """Apartment-scoped readings belong to one apartment; the rest are building-wide."""
    if meter.scope != MeterScope.APARTMENT:
        return None
    if apartment_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="apartment_id is required for apartment meters",
        )
    return apartment_id


def _readings_query(db: Session, meter_id: int, apartment_id: int | None):
    return db.query(MeterReading).filter(
        and_(
            MeterReading.meter_id == meter_id,
            MeterReading.apartment_id == apartment_id,
        )
    )


def get_last_approved_reading(
    db: Session,
    meter_id: int,
    apartment_id: int | None = None,
) -> MeterReading | None:
    """Most recent approved reading; the baseline for the next submission."""
    return (
        _readings_query(db, meter_id, apartment_id)
        .filter(MeterReading.approval_status == ApprovalStatus.APPROVED)
        .order_by(MeterReading.reading_date.desc(), MeterReading.id.desc())
        .first()
    )


def get_period_readings(
    db: Session,
    meter_id: int,
    apartment_id: int | None,
    period: str,
) -> list[MeterReading]:
    """Readings of one meter in one period, newest first."""
    return (
        _readings_query(db, meter_id, apartment_id)
        .filter(MeterReading.period == period)
        .order_by(MeterReading.created_at.desc(), MeterReading.id.desc())
        .all()
    )


def _apartment_target(db: Session, row: Meter, apartment_id: int) -> Meter:
    """The apartment's custom override of an address meter, if it has one.

    Matches the way the registry resolves overrides, so a reading lands on
    the meter the apartment's bill reads.
    """
    for meter in meter_service.get_canonical_meters(db, apartment_id):
        if not meter.is_custom:
            continue
        if meter.source_meter_id == row.id or (
            meter.source_meter_id is None and meter.name == row.name
        ):
            return meter_service.get_meter(db, meter.id)
    return row


def submit_reading(db: Session, submission: ReadingSubmission) -> MeterReading:
    """Record a landlord entry or a tenant submission.

    Landlord entries are approved immediately. Tenant submissions wait for
    review and are refused outright when a required photo is missing.
    """
    row = meter_service.get_meter(db, submission.meter_id)
    apartment_id = submission.apartment_id
    if row.apartment_id is not None:
        apartment_id = row.apartment_id
        if not row.is_custom:
            # Mirrors are rebuilt on every sync; readings live on the address meter
            row = meter_service.get_meter(db, row.source_meter_id)
    if apartment_id is not None and row.get_is_address_level():
        row = _apartment_target(db, row, apartment_id)
    if not row.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Meter is not active",
        )

    meter = to_canonical(row)
    apartment_id = _owner_apartment(meter, apartment_id)

    current = collection.period_status(
        get_period_readings(db, meter.id, apartment_id, submission.period),
        submission.period,
    )
    try:
        collection.ensure_open(current)
        new_status = collection.submission_status(
            meter, submission.submitted_by, submission.photo_url
        )
    except collection.InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except collection.ReadingCollectionError as exc:
        logger.info("Rejected submission for meter %s: %s", meter.id, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    previous_value = submission.previous_value
    if previous_value is None:
        baseline = get_last_approved_reading(db, meter.id, apartment_id)
        previous_value = baseline.current_value if baseline else Decimal("0")

    reading = MeterReading(
        meter_id=meter.id,
        apartment_id=apartment_id,
        period=submission.period,
        reading_date=submission.reading_date,
        current_value=submission.current_value,
        previous_value=previous_value,
        submitted_by=submission.submitted_by,
        approval_status=new_status,
        photo_url=submission.photo_url,
    )
    db.add(reading)
    db.commit()
    db.refresh(reading)
    return reading


def get_reading(db: Session, reading_id: int) -> MeterReading:
    """Get a reading by ID."""
    reading = db.query(MeterReading).filter(MeterReading.id == reading_id).first()
    if not reading:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reading not found",
        )
    return reading


def review_reading(db: Session, reading_id: int, decision: ReadingReview) -> MeterReading:
    """Approve or reject a pending tenant submission."""
    reading = get_reading(db, reading_id)
    try:
        reading.approval_status = collection.review(reading.approval_status, decision.approve)
    except collection.InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    reading.reviewed_at = datetime.now(UTC)
    reading.review_note = decision.note
    db.commit()
    db.refresh(reading)
    return reading


def get_readings_history(
    db: Session,
    meter_id: int,
    apartment_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[MeterReading], int]:
    """Get reading history for a meter with pagination."""
    query = _readings_query(db, meter_id, apartment_id)
    total = query.count()
    readings = (
        query.order_by(MeterReading.reading_date.desc(), MeterReading.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return readings, total


def get_collection_status(
    db: Session,
    apartment_id: int,
    period: str,
) -> ApartmentCollectionStatus:
    """Collection state of every meter of an apartment for a period."""
    meters = meter_service.get_canonical_meters(db, apartment_id)

    rows: list[MeterPeriodStatus] = []
    statuses: dict[int, ApprovalStatus] = {}
    for meter in meters:
        if not collection.requires_reading(meter):
            continue
        owner = apartment_id if meter.scope == MeterScope.APARTMENT else None
        state = collection.period_status(
            get_period_readings(db, meter.id, owner, period), period
        )
        statuses[meter.id] = state
        rows.append(
            MeterPeriodStatus(
                meter_id=meter.id,
                name=meter.name,
                period=period,
                status=state,
                requires_photo=meter.requires_photo,
            )
        )

    return ApartmentCollectionStatus(
        apartment_id=apartment_id,
        period=period,
        meters=rows,
        progress=collection.collection_progress(meters, statuses),
    )


def reading_to_response(reading: MeterReading) -> MeterReadingResponse:
    """Convert a MeterReading model to a response schema."""
    return MeterReadingResponse(
        id=reading.id,
        meter_id=reading.meter_id,
        apartment_id=reading.apartment_id,
        period=reading.period,
        reading_date=reading.reading_date,
        current_value=reading.current_value,
        previous_value=reading.previous_value,
        consumption=consumption(reading.current_value, reading.previous_value),
        submitted_by=reading.submitted_by,
        approval_status=reading.approval_status,
        photo_url=reading.photo_url,
        reviewed_at=reading.reviewed_at,
        review_note=reading.review_note,
        created_at=reading.created_at,
    )
