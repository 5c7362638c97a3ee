"""Meter database model."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.core.database import Base
from rentals.models.enums import CollectionMode, MeterKind, MeterScope, MeterUnit

if TYPE_CHECKING:
    from rentals.models.address import Address
    from rentals.models.meter_reading import MeterReading


class Meter(Base):
    """Meter definition, either address-level or per apartment.

    Address-level rows (``apartment_id`` is NULL) are the source of truth.
    Apartment rows either mirror an address meter (``is_custom`` False,
    rebuilt on every sync) or override it (``is_custom`` True).
    """

    __tablename__ = "meters"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100))
    kind: Mapped[MeterKind] = mapped_column(String(30), default=MeterKind.CUSTOM)
    scope: Mapped[MeterScope] = mapped_column(String(20), default=MeterScope.APARTMENT)
    unit: Mapped[MeterUnit] = mapped_column(String(10), default=MeterUnit.M3)
    # Stored as plain text: legacy rows may carry values outside DistributionMethod
    distribution_method: Mapped[str] = mapped_column(String(30))
    price_per_unit: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=4), default=Decimal("0")
    )
    fixed_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2), default=Decimal("0")
    )
    collection_mode: Mapped[CollectionMode] = mapped_column(
        String(20), default=CollectionMode.LANDLORD_ONLY
    )
    requires_photo: Mapped[bool] = mapped_column(default=False)

    # Foreign keys
    address_id: Mapped[int] = mapped_column(ForeignKey("addresses.id"), index=True)
    apartment_id: Mapped[int | None] = mapped_column(
        ForeignKey("apartments.id"), nullable=True, index=True
    )
    source_meter_id: Mapped[int | None] = mapped_column(
        ForeignKey("meters.id"), nullable=True
    )
    is_custom: Mapped[bool] = mapped_column(default=False)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    is_active: Mapped[bool] = mapped_column(default=True)

    # Relationships
    parent_address: Mapped["Address"] = relationship(back_populates="meters")
    readings: Mapped[list["MeterReading"]] = relationship(back_populates="meter")

    def get_is_address_level(self) -> bool:
        """Check if this is the building-wide definition."""
        return self.apartment_id is None
