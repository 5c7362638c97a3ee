"""Apartment database model."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.core.database import Base

if TYPE_CHECKING:
    from rentals.models.address import Address
    from rentals.models.tenancy import MoveOut, Tenancy


class Apartment(Base):
    """Billable unit at an address."""

    __tablename__ = "apartments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    address_id: Mapped[int] = mapped_column(ForeignKey("addresses.id"), index=True)
    number: Mapped[str] = mapped_column(String(20))
    area: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), default=Decimal("0"))
    person_count: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    is_active: Mapped[bool] = mapped_column(default=True)

    # Relationships
    parent_address: Mapped["Address"] = relationship(back_populates="apartments")
    tenancies: Mapped[list["Tenancy"]] = relationship(back_populates="apartment")
    move_outs: Mapped[list["MoveOut"]] = relationship(back_populates="apartment")
