"""Address and apartment API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rentals.core.database import get_db
from rentals.schemas.address import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    ApartmentCreate,
    ApartmentResponse,
    ApartmentUpdate,
)
from rentals.services import address as address_service
from rentals.services import meter as meter_service

router = APIRouter(tags=["addresses"])


@router.post("/addresses/", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
def create_address(address_data: AddressCreate, db: Session = Depends(get_db)):
    """Create a new address."""
    return address_service.create_address(db, address_data)


@router.get("/addresses/", response_model=list[AddressResponse])
def list_addresses(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """List all addresses."""
    return address_service.get_addresses(db, skip, limit)


@router.get("/addresses/{address_id}", response_model=AddressResponse)
def get_address(address_id: int, db: Session = Depends(get_db)):
    """Get an address by ID."""
    return address_service.get_address(db, address_id)


@router.patch("/addresses/{address_id}", response_model=AddressResponse)
def update_address(address_id: int, address_data: AddressUpdate, db: Session = Depends(get_db)):
    """Update an address."""
    return address_service.update_address(db, address_id, address_data)


@router.post(
    "/addresses/{address_id}/apartments",
    response_model=ApartmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_apartment(
    address_id: int,
    apartment_data: ApartmentCreate,
    db: Session = Depends(get_db),
):
    """Add an apartment and give it mirrors of the address meters."""
    apartment = address_service.create_apartment(db, address_id, apartment_data)
    meter_service.sync_apartment_meters(db, address_id)
    return apartment


@router.get("/addresses/{address_id}/apartments", response_model=list[ApartmentResponse])
def list_apartments(address_id: int, db: Session = Depends(get_db)):
    """List the active apartments at an address."""
    address_service.get_address(db, address_id)
    return address_service.get_apartments_for_address(db, address_id)


@router.patch("/apartments/{apartment_id}", response_model=ApartmentResponse)
def update_apartment(
    apartment_id: int,
    apartment_data: ApartmentUpdate,
    db: Session = Depends(get_db),
):
    """Update an apartment; deactivating one resyncs the address meters."""
    apartment = address_service.update_apartment(db, apartment_id, apartment_data)
    if apartment_data.is_active is not None:
        meter_service.sync_apartment_meters(db, apartment.address_id)
    return apartment
