"""Tenancy and move-out database models."""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.core.database import Base

if TYPE_CHECKING:
    from rentals.models.apartment import Apartment


class Tenancy(Base):
    """Lease of an apartment by a tenant."""

    __tablename__ = "tenancies"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    apartment_id: Mapped[int] = mapped_column(ForeignKey("apartments.id"), index=True)
    tenant_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tenant_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    lease_start: Mapped[date | None] = mapped_column(nullable=True)
    lease_end: Mapped[date | None] = mapped_column(nullable=True)
    monthly_rent: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2), default=Decimal("0")
    )
    deposit: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    is_active: Mapped[bool] = mapped_column(default=True)

    apartment: Mapped["Apartment"] = relationship(back_populates="tenancies")


class MoveOut(Base):
    """Move-out notice attached to an apartment."""

    __tablename__ = "move_outs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    apartment_id: Mapped[int] = mapped_column(ForeignKey("apartments.id"), index=True)
    notice_date: Mapped[date | None] = mapped_column(nullable=True)
    planned_date: Mapped[date | None] = mapped_column(nullable=True)
    status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    apartment: Mapped["Apartment"] = relationship(back_populates="move_outs")
