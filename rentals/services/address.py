"""Address and apartment service for business logic."""

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from rentals.models.address import Address
from rentals.models.apartment import Apartment
from rentals.schemas.address import (
    AddressCreate,
    AddressUpdate,
    ApartmentCreate,
    ApartmentUpdate,
)

logger = logging.getLogger(__name__)


def create_address(db: Session, address_data: AddressCreate) -> Address:
    """Create a new address with no apartments or meters."""
    db_address = Address(
        display_name=address_data.display_name,
        address=address_data.address,
    )
    db.add(db_address)
    db.commit()
    db.refresh(db_address)
    logger.info("Created address %s (%s)", db_address.id, db_address.display_name)
    return db_address


def get_address(db: Session, address_id: int) -> Address:
    """Get an address by ID."""
    db_address = db.query(Address).filter(Address.id == address_id).first()
    if not db_address:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Address not found",
        )
    return db_address


def get_addresses(db: Session, skip: int = 0, limit: int = 100) -> list[Address]:
    """Get all addresses with pagination."""
    return db.query(Address).offset(skip).limit(limit).all()


def update_address(
    db: Session,
    address_id: int,
    address_data: AddressUpdate,
) -> Address:
    """Update an address."""
    db_address = get_address(db, address_id)

    update_data = address_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_address, field, value)

    db.commit()
    db.refresh(db_address)
    return db_address


def create_apartment(
    db: Session,
    address_id: int,
    apartment_data: ApartmentCreate,
) -> Apartment:
    """Add an apartment to an address.

    The caller is responsible for resynchronizing the address meters so the
    new apartment receives its mirrors.
    """
    get_address(db, address_id)

    existing = (
        db.query(Apartment)
        .filter(
            Apartment.address_id == address_id,
            Apartment.number == apartment_data.number,
        )
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Apartment '{apartment_data.number}' already exists at this address",
        )

    apartment = Apartment(
        address_id=address_id,
        number=apartment_data.number,
        area=apartment_data.area,
        person_count=apartment_data.person_count,
    )
    db.add(apartment)
    db.commit()
    db.refresh(apartment)
    return apartment


def get_apartment(db: Session, apartment_id: int) -> Apartment:
    """Get an apartment by ID."""
    apartment = db.query(Apartment).filter(Apartment.id == apartment_id).first()
    if not apartment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Apartment not found",
        )
    return apartment


def get_apartments_for_address(
    db: Session,
    address_id: int,
    active_only: bool = True,
) -> list[Apartment]:
    """Get the apartments at an address."""
    query = db.query(Apartment).filter(Apartment.address_id == address_id)
    if active_only:
        query = query.filter(Apartment.is_active.is_(True))
    return query.order_by(Apartment.id).all()


def update_apartment(
    db: Session,
    apartment_id: int,
    apartment_data: ApartmentUpdate,
) -> Apartment:
    """Update an apartment."""
    apartment = get_apartment(db, apartment_id)

    update_data = apartment_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(apartment, field, value)

    db.commit()
    db.refresh(apartment)
    return apartment
