"""Occupancy and tenancy schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from rentals.models.enums import OccupancyState


class OccupancyInput(BaseModel):
    """Lease and move-out facts the resolver looks at."""

    tenant_name: str | None = None
    tenant_status: str | None = None
    lease_start: date | None = None
    lease_end: date | None = None
    move_out_planned: date | None = None
    move_out_status: str | None = None
    reference_date: date | datetime  # time of day is ignored


class OccupancyResult(BaseModel):
    """Resolved occupancy state with its display label and color token."""

    state: OccupancyState
    label: str
    color: str
    allowed_actions: list[str]


class ApartmentOccupancy(OccupancyResult):
    """Occupancy result tied to an apartment."""

    apartment_id: int
    reference_date: date


class TenancyCreate(BaseModel):
    """Schema for creating a tenancy."""

    tenant_name: str | None = None
    tenant_status: str | None = None
    lease_start: date | None = None
    lease_end: date | None = None
    monthly_rent: Decimal = Field(default=Decimal("0"), ge=0)
    deposit: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def check_lease_order(self) -> "TenancyCreate":
        """Lease cannot end before it starts."""
        if self.lease_start and self.lease_end and self.lease_end < self.lease_start:
            raise ValueError("lease_end must not be before lease_start")
        return self


class TenancyUpdate(BaseModel):
    """Schema for updating a tenancy."""

    tenant_name: str | None = None
    tenant_status: str | None = None
    lease_start: date | None = None
    lease_end: date | None = None
    monthly_rent: Decimal | None = Field(default=None, ge=0)
    deposit: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None


class TenancyResponse(BaseModel):
    """Schema for tenancy response."""

    id: int
    apartment_id: int
    tenant_name: str | None
    tenant_status: str | None
    lease_start: date | None
    lease_end: date | None
    monthly_rent: Decimal
    deposit: Decimal
    created_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class MoveOutCreate(BaseModel):
    """Schema for recording a move-out."""

    notice_date: date | None = None
    planned_date: date | None = None
    status: str | None = None


class MoveOutResponse(MoveOutCreate):
    """Schema for move-out response."""

    id: int
    apartment_id: int
    created_at: datetime

    model_config = {"from_attributes": True}
