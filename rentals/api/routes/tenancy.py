"""Tenancy, move-out and occupancy routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rentals.core.database import get_db
from rentals.schemas.occupancy import (
    ApartmentOccupancy,
    MoveOutCreate,
    MoveOutResponse,
    TenancyCreate,
    TenancyResponse,
    TenancyUpdate,
)
from rentals.services import tenancy as tenancy_service

router = APIRouter(tags=["tenancy"])


@router.post(
    "/apartments/{apartment_id}/tenancy",
    response_model=TenancyResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_tenancy(apartment_id: int, data: TenancyCreate, db: Session = Depends(get_db)):
    """Start a tenancy for an apartment."""
    return tenancy_service.create_tenancy(db, apartment_id, data)


@router.patch("/tenancies/{tenancy_id}", response_model=TenancyResponse)
def update_tenancy(tenancy_id: int, data: TenancyUpdate, db: Session = Depends(get_db)):
    """Update a tenancy."""
    return tenancy_service.update_tenancy(db, tenancy_id, data)


@router.put("/apartments/{apartment_id}/move-out", response_model=MoveOutResponse)
def record_move_out(apartment_id: int, data: MoveOutCreate, db: Session = Depends(get_db)):
    """Record or replace the move-out of an apartment."""
    return tenancy_service.record_move_out(db, apartment_id, data)


@router.delete("/apartments/{apartment_id}/move-out", status_code=status.HTTP_204_NO_CONTENT)
def clear_move_out(apartment_id: int, db: Session = Depends(get_db)) -> None:
    """Close the move-out of an apartment."""
    tenancy_service.clear_move_out(db, apartment_id)


@router.get("/apartments/{apartment_id}/occupancy", response_model=ApartmentOccupancy)
def get_occupancy(
    apartment_id: int,
    reference_date: date | None = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
) -> ApartmentOccupancy:
    """Occupancy state of an apartment, derived from its lease and move-out."""
    return tenancy_service.get_apartment_occupancy(
        db, apartment_id, reference_date or date.today()
    )
