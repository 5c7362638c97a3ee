"""Cost allocation: what one apartment owes for one meter in one period.

Everything here is a pure function of its arguments. The only side effect is
a log record for data-quality findings (meter rollback, zero divisor).
"""

import logging
from decimal import Decimal

from rentals.core.config import settings
from rentals.models.enums import AllocationBasis, DistributionMethod, MeterScope
from rentals.schemas.billing import AllocationContext, AllocationResult
from rentals.schemas.meter import MeterConfig
from rentals.schemas.meter_reading import ReadingSnapshot
from rentals.services.collection import is_billable
from rentals.services.formatting import format_currency, to_cents

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

FIXED_FEE_LABEL = "fixed fee"
PENDING_LABEL = "pending submission"
ESTIMATE_SUFFIX = "(estimate)"

# Methods whose true share needs building-wide aggregates
_APPROXIMATED = (DistributionMethod.PER_PERSON, DistributionMethod.PER_AREA)


def consumption(current_value: Decimal, previous_value: Decimal) -> Decimal:
    """Consumption between two readings, clamped to zero.

    A meter that rolled over or was replaced reads lower than before; that
    must not turn into a negative charge.
    """
    delta = current_value - previous_value
    if delta < 0:
        logger.warning(
            "Reading went backwards (%s -> %s); consumption clamped to 0",
            previous_value,
            current_value,
        )
        return ZERO
    return delta


def _split(total: Decimal, apartment_count: int) -> Decimal:
    """Equal share of ``total``; the whole amount when there is nobody to split with."""
    if apartment_count <= 0:
        logger.warning(
            "Address has %s apartments; charging the undivided total %s",
            apartment_count,
            total,
        )
        return total
    return total / apartment_count


def _result(amount: Decimal, basis: AllocationBasis, approximate: bool = False) -> AllocationResult:
    return AllocationResult(
        amount=to_cents(max(ZERO, amount)),
        currency=settings.CURRENCY,
        basis=basis,
        approximate=approximate,
    )


def has_billable_reading(reading: ReadingSnapshot | None) -> bool:
    """Check whether a reading may contribute to a bill."""
    return reading is not None and is_billable(reading.approval_status)


def allocate(
    meter: MeterConfig,
    reading: ReadingSnapshot | None,
    context: AllocationContext,
) -> AllocationResult:
    """Compute one apartment's share of a meter's cost.

    Fixed fees are a flat monthly charge per apartment and ignore readings.
    A ``fixed_split`` meter with a physical scope charges its fixed price
    too, divided among the apartments unless it belongs to one apartment.
    Metered costs are ``consumption * price_per_unit`` distributed by the
    meter's method. Apartment meters are never divided. Per-person and
    per-area meters are split equally here and flagged ``approximate``;
    their authoritative shares are computed from building-wide aggregates
    elsewhere.

    A meter without a billable reading yields 0 with basis ``pending`` so
    callers can tell "not billed yet" from "used nothing".
    """
    if meter.scope == MeterScope.NONE:
        return _result(meter.fixed_price, AllocationBasis.FIXED)

    method = meter.distribution_method
    if method == DistributionMethod.FIXED_SPLIT:
        if meter.scope == MeterScope.APARTMENT:
            return _result(meter.fixed_price, AllocationBasis.FIXED)
        return _result(_split(meter.fixed_price, context.apartment_count), AllocationBasis.FIXED)

    if not has_billable_reading(reading):
        return _result(ZERO, AllocationBasis.PENDING)

    used = consumption(reading.current_value, reading.previous_value)
    total_cost = used * meter.price_per_unit

    if method == DistributionMethod.PER_CONSUMPTION or meter.scope == MeterScope.APARTMENT:
        return _result(total_cost, AllocationBasis.CONSUMPTION)
    if method in _APPROXIMATED:
        return _result(
            _split(total_cost, context.apartment_count),
            AllocationBasis.EQUAL_SPLIT,
            approximate=True,
        )
    # per_apartment, or a method this version does not know
    return _result(_split(total_cost, context.apartment_count), AllocationBasis.EQUAL_SPLIT)


def meter_status_label(meter: MeterConfig, result: AllocationResult) -> str:
    """Short status text for a meter line: fixed fee, pending, or the amount."""
    if meter.scope == MeterScope.NONE:
        return FIXED_FEE_LABEL
    if result.basis == AllocationBasis.PENDING:
        return PENDING_LABEL
    text = format_currency(result.amount)
    if result.approximate:
        return f"{text} {ESTIMATE_SUFFIX}"
    return text
