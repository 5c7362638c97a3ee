"""Occupancy state resolver.

The state is never stored. It is re-derived from the lease and move-out
facts each time it is needed, so there is no persisted state to drift.
"""

from datetime import date, datetime

from rentals.core.config import settings
from rentals.models.enums import OccupancyState
from rentals.schemas.occupancy import OccupancyInput, OccupancyResult

OCCUPANCY_LABELS: dict[OccupancyState, str] = {
    OccupancyState.VACANT: "Vacant",
    OccupancyState.RESERVED: "Reserved",
    OccupancyState.OCCUPIED: "Occupied",
    OccupancyState.NOTICE_GIVEN: "Moving out",
    OccupancyState.MOVED_OUT_PENDING: "Awaiting close-out",
}

OCCUPANCY_COLORS: dict[OccupancyState, str] = {
    OccupancyState.VACANT: "neutral",
    OccupancyState.RESERVED: "blue",
    OccupancyState.OCCUPIED: "emerald",
    OccupancyState.NOTICE_GIVEN: "amber",
    OccupancyState.MOVED_OUT_PENDING: "rose",
}

# Workflow actions offered for each state
OCCUPANCY_ACTIONS: dict[OccupancyState, list[str]] = {
    OccupancyState.VACANT: ["add_tenant", "create_lease"],
    OccupancyState.RESERVED: ["view_lease", "cancel_reservation"],
    OccupancyState.OCCUPIED: ["view_lease", "add_payment", "submit_readings", "start_move_out"],
    OccupancyState.NOTICE_GIVEN: ["view_lease", "add_payment", "submit_readings", "schedule_inspection"],
    OccupancyState.MOVED_OUT_PENDING: ["final_readings", "settle_deposit", "close_move_out"],
}


def normalize_reference_date(value: date | datetime) -> date:
    """Drop the time of day; only the calendar date matters."""
    if isinstance(value, datetime):
        return value.date()
    return value


def has_meaningful_value(value: str | None) -> bool:
    """Non-empty and not the literal 'none'."""
    if value is None:
        return False
    stripped = value.strip()
    return bool(stripped) and stripped.lower() != "none"


def is_vacant(tenant_name: str | None, tenant_status: str | None) -> bool:
    """No tenant, a placeholder name, or an explicit vacant status."""
    if not tenant_name or not tenant_name.strip():
        return True
    sentinels = {s.lower() for s in settings.VACANCY_SENTINELS}
    if tenant_name.strip().lower() in sentinels:
        return True
    return (tenant_status or "").strip().lower() == "vacant"


def resolve_state(facts: OccupancyInput) -> OccupancyState:
    """Derive the occupancy state; the first matching rule wins."""
    today = normalize_reference_date(facts.reference_date)
    planned = facts.move_out_planned

    if is_vacant(facts.tenant_name, facts.tenant_status):
        return OccupancyState.VACANT
    if facts.lease_start and facts.lease_start > today:
        return OccupancyState.RESERVED
    # Move-out data takes precedence over the raw lease end
    if planned and planned < today and has_meaningful_value(facts.move_out_status):
        return OccupancyState.MOVED_OUT_PENDING
    if planned and planned >= today:
        return OccupancyState.NOTICE_GIVEN
    if facts.lease_end and facts.lease_end < today:
        return OccupancyState.MOVED_OUT_PENDING
    return OccupancyState.OCCUPIED


def describe_state(state: OccupancyState) -> OccupancyResult:
    """Attach label, color and actions to a state."""
    return OccupancyResult(
        state=state,
        label=OCCUPANCY_LABELS[state],
        color=OCCUPANCY_COLORS[state],
        allowed_actions=list(OCCUPANCY_ACTIONS[state]),
    )


def resolve_occupancy(facts: OccupancyInput) -> OccupancyResult:
    """Resolve the occupancy state of an apartment with its display data."""
    return describe_state(resolve_state(facts))
