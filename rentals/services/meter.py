"""Meter service for business logic."""

import logging

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentals.models.apartment import Apartment
from rentals.models.enums import MeterKind, MeterScope
from rentals.models.meter import Meter
from rentals.schemas.meter import (
    AddressMeterCreate,
    ApartmentMeterOverride,
    CanonicalMeter,
    MeterBase,
    MeterUpdate,
)
from rentals.services import address as address_service
from rentals.services.meter_policy import infer_kind, infer_scope, is_allowed
from rentals.services.registry import parse_distribution, resolve_apartment_meters

logger = logging.getLogger(__name__)

# Columns copied from an address meter onto its apartment mirrors
_MIRRORED_FIELDS = (
    "name",
    "kind",
    "scope",
    "unit",
    "distribution_method",
    "price_per_unit",
    "fixed_price",
    "collection_mode",
    "requires_photo",
)


def _resolve_shape(data: MeterBase) -> tuple[MeterKind, MeterScope]:
    """Fill in kind and scope and check the distribution policy."""
    scope = data.scope or infer_scope(data.distribution_method)
    kind = data.kind or infer_kind(data.name, shared=scope != MeterScope.APARTMENT)
    if not is_allowed(kind, data.distribution_method):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Distribution '{data.distribution_method.value}' "
                f"is not allowed for {kind.value} meters"
            ),
        )
    return kind, scope


def _check_duplicate_name(
    db: Session,
    address_id: int,
    name: str,
    apartment_id: int | None,
    exclude_id: int | None = None,
) -> None:
    if apartment_id is None:
        level = Meter.apartment_id.is_(None)
    else:
        level = and_(Meter.apartment_id == apartment_id, Meter.is_custom.is_(True))
    query = db.query(Meter).filter(
        and_(
            Meter.address_id == address_id,
            level,
            Meter.name == name,
            Meter.is_active.is_(True),
        )
    )
    if exclude_id is not None:
        query = query.filter(Meter.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Active meter with name '{name}' already exists",
        )


def create_address_meter(db: Session, meter_data: AddressMeterCreate) -> Meter:
    """Create a building-level meter and mirror it onto every apartment."""
    address_service.get_address(db, meter_data.address_id)
    _check_duplicate_name(db, meter_data.address_id, meter_data.name, None)
    kind, scope = _resolve_shape(meter_data)

    db_meter = Meter(
        address_id=meter_data.address_id,
        name=meter_data.name,
        kind=kind,
        scope=scope,
        unit=meter_data.unit,
        distribution_method=meter_data.distribution_method.value,
        price_per_unit=meter_data.price_per_unit,
        fixed_price=meter_data.fixed_price,
        collection_mode=meter_data.collection_mode,
        requires_photo=meter_data.requires_photo,
    )
    db.add(db_meter)
    db.flush()

    # The new meter and its mirrors are committed together
    sync_apartment_meters(db, meter_data.address_id)
    db.refresh(db_meter)
    return db_meter


def create_apartment_override(
    db: Session,
    apartment_id: int,
    override_data: ApartmentMeterOverride,
) -> Meter:
    """Create a custom meter for one apartment, optionally replacing an address meter."""
    apartment = address_service.get_apartment(db, apartment_id)

    if override_data.source_meter_id is not None:
        source = get_meter(db, override_data.source_meter_id)
        if source.address_id != apartment.address_id or not source.get_is_address_level():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Override must reference a meter of the apartment's address",
            )
        existing = (
            db.query(Meter)
            .filter(
                Meter.apartment_id == apartment_id,
                Meter.source_meter_id == source.id,
                Meter.is_custom.is_(True),
                Meter.is_active.is_(True),
            )
            .first()
        )
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Apartment already overrides this meter",
            )
    else:
        _check_duplicate_name(db, apartment.address_id, override_data.name, apartment_id)

    kind, scope = _resolve_shape(override_data)
    db_meter = Meter(
        address_id=apartment.address_id,
        apartment_id=apartment_id,
        source_meter_id=override_data.source_meter_id,
        is_custom=True,
        name=override_data.name,
        kind=kind,
        scope=scope,
        unit=override_data.unit,
        distribution_method=override_data.distribution_method.value,
        price_per_unit=override_data.price_per_unit,
        fixed_price=override_data.fixed_price,
        collection_mode=override_data.collection_mode,
        requires_photo=override_data.requires_photo,
    )
    db.add(db_meter)
    db.commit()
    db.refresh(db_meter)
    return db_meter


def get_meter(db: Session, meter_id: int) -> Meter:
    """Get a meter by ID."""
    meter = db.query(Meter).filter(Meter.id == meter_id).first()
    if not meter:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Meter not found",
        )
    return meter


def get_address_meters(db: Session, address_id: int, active_only: bool = True) -> list[Meter]:
    """Get the building-level meter definitions of an address."""
    query = db.query(Meter).filter(
        Meter.address_id == address_id,
        Meter.apartment_id.is_(None),
    )
    if active_only:
        query = query.filter(Meter.is_active.is_(True))
    return query.order_by(Meter.id).all()


def get_apartment_meters(db: Session, apartment_id: int) -> list[Meter]:
    """Get the apartment-level rows (mirrors and overrides) of an apartment."""
    return db.query(Meter).filter(Meter.apartment_id == apartment_id).order_by(Meter.id).all()


def get_canonical_meters(db: Session, apartment_id: int) -> list[CanonicalMeter]:
    """Resolve the meters that apply to an apartment."""
    apartment = address_service.get_apartment(db, apartment_id)
    return resolve_apartment_meters(
        apartment.address_id,
        get_address_meters(db, apartment.address_id),
        get_apartment_meters(db, apartment_id),
    )


def update_meter(db: Session, meter_id: int, meter_data: MeterUpdate) -> Meter:
    """Update a meter; address-level edits are propagated to the apartments."""
    meter = get_meter(db, meter_id)
    if not meter.get_is_address_level() and not meter.is_custom:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Mirrored meters are edited through their address meter",
        )

    update_data = meter_data.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in update_data and update_data["name"] != meter.name:
        _check_duplicate_name(
            db, meter.address_id, update_data["name"], meter.apartment_id, meter.id
        )

    # A new method without an explicit scope gets the method's default scope
    keep_scope = "scope" in update_data or "distribution_method" not in update_data
    try:
        merged = MeterBase.model_validate(
            {
                "name": update_data.get("name", meter.name),
                "kind": update_data.get("kind", meter.kind),
                "scope": update_data.get("scope", meter.scope) if keep_scope else None,
                "unit": update_data.get("unit", meter.unit),
                "distribution_method": update_data.get(
                    "distribution_method", parse_distribution(meter.distribution_method)
                ),
                "price_per_unit": update_data.get("price_per_unit", meter.price_per_unit),
                "fixed_price": update_data.get("fixed_price", meter.fixed_price),
                "collection_mode": update_data.get("collection_mode", meter.collection_mode),
                "requires_photo": update_data.get("requires_photo", meter.requires_photo),
            }
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc
    kind, scope = _resolve_shape(merged)

    for field, value in update_data.items():
        setattr(meter, field, value)
    meter.kind = kind
    meter.scope = scope
    meter.distribution_method = merged.distribution_method.value
    _commit_with_mirrors(db, meter)
    db.refresh(meter)
    return meter


def delete_meter(db: Session, meter_id: int) -> None:
    """Soft-delete a meter by deactivating it."""
    meter = get_meter(db, meter_id)
    meter.is_active = False
    _commit_with_mirrors(db, meter)


def _commit_with_mirrors(db: Session, meter: Meter) -> None:
    """Commit a meter change; address meter changes commit with their mirrors."""
    if meter.get_is_address_level():
        db.flush()
        sync_apartment_meters(db, meter.address_id)
    else:
        db.commit()


def sync_apartment_meters(db: Session, address_id: int) -> int:
    """Rebuild the apartment mirrors of every address meter.

    Replace-set semantics: all non-custom apartment meters of the address
    are deleted and one mirror per (active apartment, active address meter)
    is inserted, in a single transaction. Pending changes already flushed
    to the session, such as the address meter edit that triggered the sync,
    are committed in that same transaction. Running it twice gives the same
    result. On failure the whole transaction is rolled back.

    Returns the number of mirrors written.
    """
    try:
        address_meters = get_address_meters(db, address_id)
        apartments = (
            db.query(Apartment)
            .filter(Apartment.address_id == address_id, Apartment.is_active.is_(True))
            .all()
        )

        db.query(Meter).filter(
            Meter.address_id == address_id,
            Meter.apartment_id.is_not(None),
            Meter.is_custom.is_(False),
        ).delete(synchronize_session="fetch")

        written = 0
        for apartment in apartments:
            for source in address_meters:
                mirror = Meter(
                    address_id=address_id,
                    apartment_id=apartment.id,
                    source_meter_id=source.id,
                    is_custom=False,
                    **{field: getattr(source, field) for field in _MIRRORED_FIELDS},
                )
                db.add(mirror)
                written += 1
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Meter sync failed for address %s; previous mirrors kept", address_id)
        raise

    logger.info(
        "Synced %s meter mirrors across %s apartments at address %s",
        written,
        len(apartments),
        address_id,
    )
    return written
