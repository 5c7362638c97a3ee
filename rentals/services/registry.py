"""Meter registry: one canonical meter list per apartment.

Address-level meters are the source of truth. An apartment sees every active
address meter unless it carries a custom override of it, in which case the
override wins. Apartment rows that merely mirror an address meter carry no
information of their own and are ignored here.
"""

import logging
import re
from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol

from rentals.core.config import settings
from rentals.models.enums import DistributionMethod, MeterKind, MeterScope
from rentals.schemas.meter import CanonicalMeter

logger = logging.getLogger(__name__)

# Spellings found in older rows
_LEGACY_DISTRIBUTIONS: dict[str, DistributionMethod] = {
    "fixed": DistributionMethod.FIXED_SPLIT,
    "consumption": DistributionMethod.PER_CONSUMPTION,
}


class MeterRow(Protocol):
    """Attributes the registry reads from a stored meter."""

    id: int
    name: str
    kind: str
    scope: str
    unit: str
    distribution_method: str
    price_per_unit: Decimal
    fixed_price: Decimal
    collection_mode: str
    requires_photo: bool
    address_id: int
    apartment_id: int | None
    source_meter_id: int | None
    is_custom: bool
    is_active: bool


def parse_distribution(raw: str | DistributionMethod | None) -> DistributionMethod | None:
    """Map a stored distribution value onto the known methods.

    Returns None for values that match nothing.
    """
    if raw is None:
        return None
    if isinstance(raw, DistributionMethod):
        return raw
    try:
        return DistributionMethod(raw)
    except ValueError:
        return _LEGACY_DISTRIBUTIONS.get(raw)


def is_heating(name: str) -> bool:
    """Check whether a meter name designates heating."""
    return re.search(settings.HEATING_NAME_PATTERN, name, re.IGNORECASE) is not None


def normalize_meter(meter: CanonicalMeter) -> CanonicalMeter:
    """Apply the scope rules every canonical meter must satisfy."""
    updates: dict[str, object] = {}

    if meter.scope == MeterScope.NONE:
        if meter.distribution_method != DistributionMethod.FIXED_SPLIT:
            updates["distribution_method"] = DistributionMethod.FIXED_SPLIT
    elif (
        meter.distribution_method
        in (DistributionMethod.PER_AREA, DistributionMethod.PER_APARTMENT)
        and meter.scope != MeterScope.BUILDING
        and (meter.kind == MeterKind.HEATING or is_heating(meter.name))
    ):
        # Heating is never billed as a purely individual meter
        logger.info("Meter %s (%s) forced to building scope", meter.id, meter.name)
        updates["scope"] = MeterScope.BUILDING

    if not updates:
        return meter
    return meter.model_copy(update=updates)


def to_canonical(row: MeterRow) -> CanonicalMeter:
    """Convert a stored meter into a normalized canonical record."""
    data = CanonicalMeter.model_validate(
        {
            "id": row.id,
            "name": row.name,
            "kind": row.kind,
            "scope": row.scope,
            "unit": row.unit,
            "distribution_method": parse_distribution(row.distribution_method),
            "price_per_unit": row.price_per_unit,
            "fixed_price": row.fixed_price,
            "collection_mode": row.collection_mode,
            "requires_photo": row.requires_photo,
            "address_id": row.address_id,
            "apartment_id": row.apartment_id,
            "source_meter_id": row.source_meter_id,
            "is_custom": row.is_custom,
        }
    )
    return normalize_meter(data)


def resolve_apartment_meters(
    address_id: int | None,
    address_meters: Iterable[MeterRow],
    apartment_meters: Iterable[MeterRow] = (),
) -> list[CanonicalMeter]:
    """Resolve the meters that apply to one apartment.

    Custom overrides match the address meter they name in
    ``source_meter_id``, or failing that one with the same name. Custom
    meters with no address counterpart are appended after the address
    meters. An address without an identifier has no meters.
    """
    if not address_id:
        return []

    overrides = [m for m in apartment_meters if m.is_custom and m.is_active]
    by_source = {m.source_meter_id: m for m in overrides if m.source_meter_id is not None}
    by_name = {m.name: m for m in overrides if m.source_meter_id is None}
    used: set[int] = set()

    resolved: list[CanonicalMeter] = []
    for meter in address_meters:
        if not meter.is_active or meter.apartment_id is not None:
            continue
        override = by_source.get(meter.id) or by_name.get(meter.name)
        if override is not None:
            used.add(override.id)
            resolved.append(to_canonical(override))
        else:
            resolved.append(to_canonical(meter))

    resolved.extend(
        to_canonical(m) for m in overrides if m.id not in used and m.source_meter_id is None
    )
    return resolved
