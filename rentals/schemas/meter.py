"""Meter Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from rentals.models.enums import (
    CollectionMode,
    DistributionMethod,
    MeterKind,
    MeterScope,
    MeterUnit,
)


class MeterConfig(BaseModel):
    """Pricing and collection configuration the allocator works from.

    ``distribution_method`` is None when the stored value is not a known
    method; the allocator falls back to a scope-based default for those.
    """

    scope: MeterScope
    unit: MeterUnit = MeterUnit.M3
    distribution_method: DistributionMethod | None
    price_per_unit: Decimal = Field(default=Decimal("0"), ge=0)
    fixed_price: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    collection_mode: CollectionMode = CollectionMode.LANDLORD_ONLY
    requires_photo: bool = False


class CanonicalMeter(MeterConfig):
    """One resolved meter as it applies to a single apartment."""

    id: int
    name: str
    kind: MeterKind = MeterKind.CUSTOM
    address_id: int
    apartment_id: int | None = None
    source_meter_id: int | None = None
    is_custom: bool = False


class MeterBase(BaseModel):
    """Fields shared by address meters and apartment overrides."""

    name: str = Field(min_length=1, max_length=100)
    kind: MeterKind | None = None
    scope: MeterScope | None = None
    unit: MeterUnit = MeterUnit.M3
    distribution_method: DistributionMethod
    price_per_unit: Decimal = Field(default=Decimal("0"), ge=0)
    fixed_price: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    collection_mode: CollectionMode = CollectionMode.LANDLORD_ONLY
    requires_photo: bool = False

    @model_validator(mode="after")
    def check_fixed_fee_shape(self) -> "MeterBase":
        """A fixed-fee scope only makes sense with a fixed split."""
        if self.scope == MeterScope.NONE and self.distribution_method != DistributionMethod.FIXED_SPLIT:
            raise ValueError("Meters without a physical scope must use fixed_split")
        return self


class AddressMeterCreate(MeterBase):
    """Schema for creating a building-level meter definition."""

    address_id: int


class ApartmentMeterOverride(MeterBase):
    """Schema for an apartment-specific override of an address meter.

    When ``source_meter_id`` is omitted the override is a meter that only
    exists for this apartment.
    """

    source_meter_id: int | None = None


class MeterUpdate(BaseModel):
    """Schema for updating a meter."""

    name: str | None = None
    kind: MeterKind | None = None
    scope: MeterScope | None = None
    unit: MeterUnit | None = None
    distribution_method: DistributionMethod | None = None
    price_per_unit: Decimal | None = Field(default=None, ge=0)
    fixed_price: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    collection_mode: CollectionMode | None = None
    requires_photo: bool | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_at_least_one_field(self) -> "MeterUpdate":
        """Ensure at least one field is provided for update."""
        if all(v is None for v in self.model_dump().values()):
            raise ValueError("At least one field must be provided for update")
        return self


class MeterResponse(BaseModel):
    """Schema for meter response."""

    id: int
    name: str
    kind: MeterKind
    scope: MeterScope
    unit: MeterUnit
    distribution_method: str
    price_per_unit: Decimal
    fixed_price: Decimal
    collection_mode: CollectionMode
    requires_photo: bool
    address_id: int
    apartment_id: int | None
    source_meter_id: int | None
    is_custom: bool
    created_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class ApartmentMetersResponse(BaseModel):
    """Canonical meter list for one apartment."""

    apartment_id: int
    meters: list[CanonicalMeter]
    tenant_visible_meter_ids: list[int]
