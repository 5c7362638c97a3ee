"""Billing schemas for per-apartment cost allocation."""

from decimal import Decimal

from pydantic import BaseModel, Field

from rentals.models.enums import AllocationBasis, ApprovalStatus


class AllocationContext(BaseModel):
    """Building aggregates a single allocation needs."""

    apartment_count: int
    person_count: int | None = None
    total_person_count: int | None = None
    area: Decimal | None = None
    total_area: Decimal | None = None


class AllocationResult(BaseModel):
    """Amount one apartment owes for one meter in one period.

    ``approximate`` marks local equal-split estimates of per-person and
    per-area meters, which are not the bill of record.
    """

    amount: Decimal = Field(ge=0)
    currency: str = "EUR"
    basis: AllocationBasis
    approximate: bool = False


class BillLine(BaseModel):
    """One meter's contribution to an apartment bill."""

    meter_id: int
    name: str
    method_label: str
    status_label: str
    reading_status: ApprovalStatus | None
    consumption: Decimal | None
    allocation: AllocationResult


class ApartmentBill(BaseModel):
    """All meter charges for an apartment in a billing period."""

    apartment_id: int
    period: str
    currency: str
    lines: list[BillLine]
    total: Decimal
    has_estimates: bool
    pending_meters: list[str]
    warnings: list[str] = []
