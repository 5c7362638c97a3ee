"""MeterReading database model - one row per submission."""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.core.database import Base
from rentals.models.enums import ApprovalStatus, SubmittedBy

if TYPE_CHECKING:
    from rentals.models.meter import Meter


class MeterReading(Base):
    """Meter reading for one billing period."""

    __tablename__ = "meter_readings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        index=True,
    )  # When added to database
    reading_date: Mapped[date] = mapped_column(index=True)  # When reading was taken
    period: Mapped[str] = mapped_column(String(7), index=True)  # YYYY-MM

    current_value: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=3))
    previous_value: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=3))

    submitted_by: Mapped[SubmittedBy] = mapped_column(String(20))
    approval_status: Mapped[ApprovalStatus] = mapped_column(String(20), index=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    review_note: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Foreign keys
    meter_id: Mapped[int] = mapped_column(ForeignKey("meters.id"), index=True)
    apartment_id: Mapped[int | None] = mapped_column(
        ForeignKey("apartments.id"),
        nullable=True,
        index=True,
    )  # NULL for building-wide readings

    # Relationships
    meter: Mapped["Meter"] = relationship(back_populates="readings")
