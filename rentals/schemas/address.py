"""Address and apartment Pydantic schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class AddressCreate(BaseModel):
    """Schema for creating an address."""

    display_name: str
    address: str | None = None


class AddressUpdate(BaseModel):
    """Schema for updating an address."""

    display_name: str | None = None
    address: str | None = None
    is_active: bool | None = None


class AddressResponse(BaseModel):
    """Schema for address response."""

    id: int
    display_name: str
    address: str | None
    created_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class ApartmentCreate(BaseModel):
    """Schema for adding an apartment to an address."""

    number: str = Field(min_length=1, max_length=20)
    area: Decimal = Field(default=Decimal("0"), ge=0)
    person_count: int = Field(default=0, ge=0)


class ApartmentUpdate(BaseModel):
    """Schema for updating an apartment."""

    number: str | None = None
    area: Decimal | None = Field(default=None, ge=0)
    person_count: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ApartmentResponse(BaseModel):
    """Schema for apartment response."""

    id: int
    address_id: int
    number: str
    area: Decimal
    person_count: int
    created_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}
