"""Billing service: per-apartment charges for a billing period."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy.orm import Session

from rentals.core.config import settings
from rentals.models.enums import AllocationBasis, MeterScope
from rentals.schemas.billing import AllocationContext, ApartmentBill, BillLine
from rentals.schemas.meter import CanonicalMeter
from rentals.services import address as address_service
from rentals.services import meter as meter_service
from rentals.services.allocation import (
    allocate,
    consumption,
    has_billable_reading,
    meter_status_label,
)
from rentals.services.formatting import distribution_label
from rentals.services.meter_policy import check_preconditions
from rentals.services.reading_source import DatabaseReadingSource, ReadingSource

logger = logging.getLogger(__name__)


def reading_owner(meter: CanonicalMeter, apartment_id: int) -> int | None:
    """Apartment a meter's readings are filed under; None for building-wide readings."""
    if meter.scope == MeterScope.APARTMENT:
        return apartment_id
    return None


def _precondition_warnings(
    meters: Iterable[CanonicalMeter],
    context: AllocationContext,
) -> list[str]:
    """Data-quality findings for meters whose method the building data cannot support."""
    findings: list[str] = []
    for meter in meters:
        if meter.distribution_method is None:
            findings.append(f"{meter.name}: unknown distribution method")
            continue
        ok, reason = check_preconditions(
            meter.kind,
            meter.distribution_method,
            context.apartment_count,
            context.total_area or Decimal("0"),
            meter.fixed_price,
        )
        if not ok:
            findings.append(f"{meter.name}: {reason}")
    return findings


def build_apartment_bill(
    apartment_id: int,
    period: str,
    meters: Iterable[CanonicalMeter],
    source: ReadingSource,
    context: AllocationContext,
) -> ApartmentBill:
    """Allocate every meter of an apartment for one period."""
    meters = list(meters)
    lines: list[BillLine] = []
    for meter in meters:
        reading = None
        if meter.scope != MeterScope.NONE:
            reading = source.latest(meter.id, reading_owner(meter, apartment_id))

        result = allocate(meter, reading, context)
        used = None
        if has_billable_reading(reading):
            used = consumption(reading.current_value, reading.previous_value)

        lines.append(
            BillLine(
                meter_id=meter.id,
                name=meter.name,
                method_label=distribution_label(meter.distribution_method),
                status_label=meter_status_label(meter, result),
                reading_status=reading.approval_status if reading else None,
                consumption=used,
                allocation=result,
            )
        )

    warnings: list[str] = []
    if context.apartment_count <= 0:
        warnings.append("Address has no billable apartments; shared costs are not divided")
    warnings.extend(_precondition_warnings(meters, context))

    return ApartmentBill(
        apartment_id=apartment_id,
        period=period,
        currency=settings.CURRENCY,
        lines=lines,
        total=sum((line.allocation.amount for line in lines), Decimal("0")),
        has_estimates=any(line.allocation.approximate for line in lines),
        pending_meters=[
            line.name for line in lines if line.allocation.basis == AllocationBasis.PENDING
        ],
        warnings=warnings,
    )


def build_allocation_context(db: Session, apartment_id: int) -> AllocationContext:
    """Collect the building aggregates for an apartment's address."""
    apartment = address_service.get_apartment(db, apartment_id)
    apartments = address_service.get_apartments_for_address(db, apartment.address_id)
    return AllocationContext(
        apartment_count=len(apartments),
        person_count=apartment.person_count,
        total_person_count=sum(a.person_count for a in apartments),
        area=apartment.area,
        total_area=sum((a.area for a in apartments), Decimal("0")),
    )


def get_apartment_bill(db: Session, apartment_id: int, period: str) -> ApartmentBill:
    """Compute an apartment's utility bill from stored meters and readings."""
    context = build_allocation_context(db, apartment_id)
    if context.apartment_count <= 0:
        logger.warning("Apartment %s belongs to an address with no active apartments", apartment_id)

    meters = meter_service.get_canonical_meters(db, apartment_id)
    return build_apartment_bill(
        apartment_id,
        period,
        meters,
        DatabaseReadingSource(db, period),
        context,
    )
