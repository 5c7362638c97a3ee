"""Which distribution methods each kind of meter may use."""

from dataclasses import dataclass
from decimal import Decimal

from rentals.models.enums import (
    CollectionMode,
    DistributionMethod,
    MeterKind,
    MeterScope,
)
from rentals.schemas.meter import MeterConfig


@dataclass(frozen=True)
class KindPolicy:
    """Allowed and default distribution for a meter kind."""

    allowed: tuple[DistributionMethod, ...]
    default: DistributionMethod
    has_individual_meters: bool = False


_METERED = (
    DistributionMethod.PER_CONSUMPTION,
    DistributionMethod.PER_AREA,
    DistributionMethod.PER_APARTMENT,
    DistributionMethod.FIXED_SPLIT,
)
_SHARED = (
    DistributionMethod.PER_APARTMENT,
    DistributionMethod.PER_AREA,
    DistributionMethod.PER_CONSUMPTION,
    DistributionMethod.FIXED_SPLIT,
)
_FEES = (DistributionMethod.FIXED_SPLIT, DistributionMethod.PER_APARTMENT)

ALLOWED: dict[MeterKind, KindPolicy] = {
    MeterKind.WATER_COLD: KindPolicy(_METERED, DistributionMethod.PER_CONSUMPTION, True),
    MeterKind.WATER_HOT: KindPolicy(_METERED, DistributionMethod.PER_CONSUMPTION, True),
    MeterKind.ELECTRICITY_IND: KindPolicy(_METERED, DistributionMethod.PER_CONSUMPTION, True),
    MeterKind.GAS_IND: KindPolicy(_METERED, DistributionMethod.PER_CONSUMPTION, True),
    MeterKind.HEATING: KindPolicy(
        (
            DistributionMethod.PER_AREA,
            DistributionMethod.PER_CONSUMPTION,
            DistributionMethod.FIXED_SPLIT,
            DistributionMethod.PER_APARTMENT,
        ),
        DistributionMethod.PER_AREA,
        True,
    ),
    MeterKind.ELECTRICITY_SHARED: KindPolicy(_SHARED, DistributionMethod.PER_APARTMENT),
    MeterKind.VENTILATION: KindPolicy(_SHARED, DistributionMethod.PER_APARTMENT),
    MeterKind.ELEVATOR: KindPolicy(_SHARED, DistributionMethod.PER_APARTMENT),
    MeterKind.INTERNET: KindPolicy(_FEES, DistributionMethod.FIXED_SPLIT),
    MeterKind.TRASH: KindPolicy(_FEES, DistributionMethod.FIXED_SPLIT),
    MeterKind.CUSTOM: KindPolicy(
        (
            DistributionMethod.PER_APARTMENT,
            DistributionMethod.PER_CONSUMPTION,
            DistributionMethod.PER_AREA,
            DistributionMethod.PER_PERSON,
            DistributionMethod.FIXED_SPLIT,
        ),
        DistributionMethod.PER_APARTMENT,
        True,
    ),
}

# Name fragments (English and Lithuanian) checked in order
_INDIVIDUAL_KEYWORDS: list[tuple[tuple[str, ...], MeterKind]] = [
    (("cold water", "šaltas"), MeterKind.WATER_COLD),
    (("hot water", "karštas"), MeterKind.WATER_HOT),
    (("gas", "dujos"), MeterKind.GAS_IND),
    (("heating", "šildymas"), MeterKind.HEATING),
    (("electricity", "elektra"), MeterKind.ELECTRICITY_IND),
]
_SHARED_KEYWORDS: list[tuple[tuple[str, ...], MeterKind]] = [
    (("heating", "šildymas"), MeterKind.HEATING),
    (("ventilation", "vėdinimas"), MeterKind.VENTILATION),
    (("elevator", "liftas"), MeterKind.ELEVATOR),
    (("internet", "internetas"), MeterKind.INTERNET),
    (("trash", "garbage", "šiukšl"), MeterKind.TRASH),
    (("electricity", "elektra"), MeterKind.ELECTRICITY_SHARED),
]


def infer_kind(name: str, shared: bool) -> MeterKind:
    """Guess the meter kind from its display name."""
    lowered = name.lower()
    table = _SHARED_KEYWORDS if shared else _INDIVIDUAL_KEYWORDS
    for keywords, kind in table:
        if any(keyword in lowered for keyword in keywords):
            return kind
    return MeterKind.CUSTOM


def infer_scope(method: DistributionMethod) -> MeterScope:
    """Default scope for a meter created without an explicit one."""
    if method == DistributionMethod.FIXED_SPLIT:
        return MeterScope.NONE
    if method == DistributionMethod.PER_CONSUMPTION:
        return MeterScope.APARTMENT
    return MeterScope.BUILDING


def default_distribution(kind: MeterKind) -> DistributionMethod:
    """Distribution method a new meter of ``kind`` starts with."""
    return ALLOWED[kind].default


def is_allowed(kind: MeterKind, method: DistributionMethod) -> bool:
    """Check whether ``method`` may be used for a meter of ``kind``."""
    return method in ALLOWED[kind].allowed


def check_preconditions(
    kind: MeterKind,
    method: DistributionMethod,
    apartment_count: int,
    total_area: Decimal,
    fixed_price: Decimal,
    has_allocators: bool = False,
) -> tuple[bool, str | None]:
    """Check that the building data supports a distribution method.

    Returns (allowed, reason). A failed precondition is a data-quality
    finding, not an error.
    """
    if method == DistributionMethod.PER_AREA and total_area <= 0:
        return False, "Apartment areas are missing"
    if method == DistributionMethod.PER_APARTMENT and apartment_count <= 0:
        return False, "Address has no apartments"
    if method == DistributionMethod.FIXED_SPLIT and fixed_price <= 0:
        return False, "Fixed amount is not set"
    if (
        kind == MeterKind.HEATING
        and method == DistributionMethod.PER_APARTMENT
        and not has_allocators
    ):
        return False, "Heating has no cost allocators"
    return True, None


def is_visible_to_tenant(meter: MeterConfig) -> bool:
    """Tenants only see meters they are asked to photograph."""
    return meter.collection_mode == CollectionMode.TENANT_PHOTO and meter.scope != MeterScope.NONE
