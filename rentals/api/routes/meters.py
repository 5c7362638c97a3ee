"""Meter API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rentals.core.database import get_db
from rentals.schemas.meter import (
    AddressMeterCreate,
    ApartmentMeterOverride,
    ApartmentMetersResponse,
    MeterResponse,
    MeterUpdate,
)
from rentals.services import address as address_service
from rentals.services import meter as meter_service
from rentals.services.meter_policy import is_visible_to_tenant

router = APIRouter(tags=["meters"])


@router.post("/meters/", response_model=MeterResponse, status_code=status.HTTP_201_CREATED)
def create_address_meter(meter_data: AddressMeterCreate, db: Session = Depends(get_db)):
    """Create a building-level meter; every apartment receives a mirror."""
    return meter_service.create_address_meter(db, meter_data)


@router.get("/addresses/{address_id}/meters", response_model=list[MeterResponse])
def list_address_meters(address_id: int, db: Session = Depends(get_db)):
    """List the building-level meter definitions of an address."""
    address_service.get_address(db, address_id)
    return meter_service.get_address_meters(db, address_id)


@router.post(
    "/apartments/{apartment_id}/meters",
    response_model=MeterResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_apartment_override(
    apartment_id: int,
    override_data: ApartmentMeterOverride,
    db: Session = Depends(get_db),
):
    """Create a custom meter for one apartment."""
    return meter_service.create_apartment_override(db, apartment_id, override_data)


@router.get("/apartments/{apartment_id}/meters", response_model=ApartmentMetersResponse)
def list_apartment_meters(apartment_id: int, db: Session = Depends(get_db)):
    """Resolved meters of an apartment (address meters with overrides applied)."""
    meters = meter_service.get_canonical_meters(db, apartment_id)
    return ApartmentMetersResponse(
        apartment_id=apartment_id,
        meters=meters,
        tenant_visible_meter_ids=[m.id for m in meters if is_visible_to_tenant(m)],
    )


@router.get("/meters/{meter_id}", response_model=MeterResponse)
def get_meter(meter_id: int, db: Session = Depends(get_db)):
    """Get a meter by ID."""
    return meter_service.get_meter(db, meter_id)


@router.patch("/meters/{meter_id}", response_model=MeterResponse)
def update_meter(meter_id: int, meter_data: MeterUpdate, db: Session = Depends(get_db)):
    """Update a meter. Address meter edits are pushed to all apartments."""
    return meter_service.update_meter(db, meter_id, meter_data)


@router.delete("/meters/{meter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meter(meter_id: int, db: Session = Depends(get_db)) -> None:
    """Deactivate a meter."""
    meter_service.delete_meter(db, meter_id)


@router.post("/addresses/{address_id}/meters/sync")
def sync_address_meters(address_id: int, db: Session = Depends(get_db)) -> dict[str, int]:
    """Rebuild the apartment mirrors of an address's meters."""
    address_service.get_address(db, address_id)
    written = meter_service.sync_apartment_meters(db, address_id)
    return {"address_id": address_id, "mirrors": written}
