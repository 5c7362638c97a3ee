"""Address (building) database model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.core.database import Base

if TYPE_CHECKING:
    from rentals.models.apartment import Apartment
    from rentals.models.meter import Meter


class Address(Base):
    """Building that apartments and communal meters are attached to."""

    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    display_name: Mapped[str] = mapped_column(String(100), index=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    is_active: Mapped[bool] = mapped_column(default=True)

    # Relationships
    apartments: Mapped[list["Apartment"]] = relationship(back_populates="parent_address")
    meters: Mapped[list["Meter"]] = relationship(back_populates="parent_address")
