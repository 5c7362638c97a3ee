"""Tenancy service: leases, move-outs and the derived occupancy state."""

from datetime import date

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from rentals.models.tenancy import MoveOut, Tenancy
from rentals.schemas.occupancy import (
    ApartmentOccupancy,
    MoveOutCreate,
    OccupancyInput,
    TenancyCreate,
    TenancyUpdate,
)
from rentals.services import address as address_service
from rentals.services.occupancy import resolve_occupancy


def create_tenancy(db: Session, apartment_id: int, data: TenancyCreate) -> Tenancy:
    """Start a tenancy; any previous active tenancy of the apartment is closed."""
    address_service.get_apartment(db, apartment_id)

    db.query(Tenancy).filter(
        Tenancy.apartment_id == apartment_id,
        Tenancy.is_active.is_(True),
    ).update({Tenancy.is_active: False}, synchronize_session=False)

    tenancy = Tenancy(apartment_id=apartment_id, **data.model_dump())
    db.add(tenancy)
    db.commit()
    db.refresh(tenancy)
    return tenancy


def get_tenancy(db: Session, tenancy_id: int) -> Tenancy:
    """Get a tenancy by ID."""
    tenancy = db.query(Tenancy).filter(Tenancy.id == tenancy_id).first()
    if not tenancy:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenancy not found",
        )
    return tenancy


def get_active_tenancy(db: Session, apartment_id: int) -> Tenancy | None:
    """The apartment's current tenancy, if any."""
    return (
        db.query(Tenancy)
        .filter(Tenancy.apartment_id == apartment_id, Tenancy.is_active.is_(True))
        .order_by(Tenancy.id.desc())
        .first()
    )


def update_tenancy(db: Session, tenancy_id: int, data: TenancyUpdate) -> Tenancy:
    """Update a tenancy."""
    tenancy = get_tenancy(db, tenancy_id)

    update_data = data.model_dump(exclude_unset=True)
    lease_start = update_data.get("lease_start", tenancy.lease_start)
    lease_end = update_data.get("lease_end", tenancy.lease_end)
    if lease_start and lease_end and lease_end < lease_start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="lease_end must not be before lease_start",
        )

    for field, value in update_data.items():
        setattr(tenancy, field, value)

    db.commit()
    db.refresh(tenancy)
    return tenancy


def record_move_out(db: Session, apartment_id: int, data: MoveOutCreate) -> MoveOut:
    """Record or replace the move-out of an apartment (one per apartment)."""
    address_service.get_apartment(db, apartment_id)

    move_out = get_move_out(db, apartment_id)
    if move_out is None:
        move_out = MoveOut(apartment_id=apartment_id)
        db.add(move_out)
    for field, value in data.model_dump().items():
        setattr(move_out, field, value)

    db.commit()
    db.refresh(move_out)
    return move_out


def get_move_out(db: Session, apartment_id: int) -> MoveOut | None:
    """The apartment's move-out record, if any."""
    return db.query(MoveOut).filter(MoveOut.apartment_id == apartment_id).first()


def clear_move_out(db: Session, apartment_id: int) -> None:
    """Remove the move-out record once the move-out has been closed."""
    db.query(MoveOut).filter(MoveOut.apartment_id == apartment_id).delete()
    db.commit()


def build_occupancy_input(
    tenancy: Tenancy | None,
    move_out: MoveOut | None,
    reference_date: date,
) -> OccupancyInput:
    """Collect the facts the resolver needs from stored records."""
    return OccupancyInput(
        tenant_name=tenancy.tenant_name if tenancy else None,
        tenant_status=tenancy.tenant_status if tenancy else None,
        lease_start=tenancy.lease_start if tenancy else None,
        lease_end=tenancy.lease_end if tenancy else None,
        move_out_planned=move_out.planned_date if move_out else None,
        move_out_status=move_out.status if move_out else None,
        reference_date=reference_date,
    )


def get_apartment_occupancy(
    db: Session,
    apartment_id: int,
    reference_date: date,
) -> ApartmentOccupancy:
    """Resolve the occupancy state of an apartment on ``reference_date``."""
    address_service.get_apartment(db, apartment_id)
    facts = build_occupancy_input(
        get_active_tenancy(db, apartment_id),
        get_move_out(db, apartment_id),
        reference_date,
    )
    result = resolve_occupancy(facts)
    return ApartmentOccupancy(
        apartment_id=apartment_id,
        reference_date=reference_date,
        **result.model_dump(),
    )
