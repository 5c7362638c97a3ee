"""MeterReading Pydantic schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from rentals.models.enums import ApprovalStatus, SubmittedBy

PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class ReadingSnapshot(BaseModel):
    """Latest current/previous pair for a meter, as the allocator sees it."""

    current_value: Decimal = Field(ge=0)
    previous_value: Decimal = Field(ge=0)
    submitted_by: SubmittedBy = SubmittedBy.LANDLORD
    approval_status: ApprovalStatus = ApprovalStatus.APPROVED
    photo_url: str | None = None

    model_config = {"from_attributes": True}


class ReadingSubmission(BaseModel):
    """Schema for submitting a meter reading.

    ``previous_value`` defaults to the last approved reading of the meter.
    """

    meter_id: int
    apartment_id: int | None = None
    period: str = Field(pattern=PERIOD_PATTERN)
    reading_date: date
    current_value: Decimal = Field(ge=0)
    previous_value: Decimal | None = Field(default=None, ge=0)
    submitted_by: SubmittedBy
    photo_url: str | None = None

    @field_validator("photo_url")
    @classmethod
    def strip_photo_url(cls, v: str | None) -> str | None:
        """Treat whitespace-only URLs as missing."""
        if v is None:
            return None
        return v.strip() or None


class ReadingReview(BaseModel):
    """Schema for a landlord's decision on a pending reading."""

    approve: bool
    note: str | None = None


class MeterReadingResponse(BaseModel):
    """Schema for meter reading response."""

    id: int
    meter_id: int
    apartment_id: int | None
    period: str
    reading_date: date
    current_value: Decimal
    previous_value: Decimal
    consumption: Decimal
    submitted_by: SubmittedBy
    approval_status: ApprovalStatus
    photo_url: str | None
    reviewed_at: datetime | None
    review_note: str | None
    created_at: datetime


class MeterReadingHistory(BaseModel):
    """Schema for paginated meter reading history."""

    meter_id: int
    readings: list[MeterReadingResponse]
    total: int
    limit: int
    offset: int


class MeterPeriodStatus(BaseModel):
    """Collection status of one meter for one billing period."""

    meter_id: int
    name: str
    period: str
    status: ApprovalStatus
    requires_photo: bool


class CollectionProgress(BaseModel):
    """Which required meters still block a complete period."""

    missing: list[str]
    pending: list[str]
    complete: bool


class ApartmentCollectionStatus(BaseModel):
    """Per-meter statuses plus overall progress for an apartment."""

    apartment_id: int
    period: str
    meters: list[MeterPeriodStatus]
    progress: CollectionProgress
