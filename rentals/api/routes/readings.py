"""MeterReading routes: submission, review and collection status."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rentals.core.database import get_db
from rentals.schemas.meter_reading import (
    PERIOD_PATTERN,
    ApartmentCollectionStatus,
    MeterReadingHistory,
    MeterReadingResponse,
    ReadingReview,
    ReadingSubmission,
)
from rentals.services import meter_reading as reading_service
from rentals.services.formatting import current_period

router = APIRouter(prefix="/readings", tags=["meter-readings"])


@router.post(
    "/",
    response_model=MeterReadingResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_reading(
    submission: ReadingSubmission,
    db: Session = Depends(get_db),
) -> MeterReadingResponse:
    """Submit a meter reading.

    Landlord entries are approved immediately. Tenant submissions on
    tenant-photo meters wait for review; a missing required photo is refused.
    """
    reading = reading_service.submit_reading(db, submission)
    return reading_service.reading_to_response(reading)


@router.post("/{reading_id}/review", response_model=MeterReadingResponse)
def review_reading(
    reading_id: int,
    decision: ReadingReview,
    db: Session = Depends(get_db),
) -> MeterReadingResponse:
    """Approve or reject a pending tenant submission."""
    reading = reading_service.review_reading(db, reading_id, decision)
    return reading_service.reading_to_response(reading)


@router.get("/meter/{meter_id}/history", response_model=MeterReadingHistory)
def get_meter_reading_history(
    meter_id: int,
    apartment_id: int | None = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> MeterReadingHistory:
    """Get reading history for a specific meter with pagination."""
    readings, total = reading_service.get_readings_history(
        db, meter_id, apartment_id, limit, offset
    )
    return MeterReadingHistory(
        meter_id=meter_id,
        readings=[reading_service.reading_to_response(r) for r in readings],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/apartment/{apartment_id}/status", response_model=ApartmentCollectionStatus)
def get_collection_status(
    apartment_id: int,
    period: str | None = Query(
        None, pattern=PERIOD_PATTERN, description="Billing period YYYY-MM, defaults to this month"
    ),
    db: Session = Depends(get_db),
) -> ApartmentCollectionStatus:
    """Which meters of an apartment still need readings for a period."""
    return reading_service.get_collection_status(
        db, apartment_id, period or current_period(date.today())
    )
