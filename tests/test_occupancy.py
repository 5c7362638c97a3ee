"""Tests for the occupancy state resolver."""

from datetime import date, datetime

import pytest

from rentals.models.enums import OccupancyState
from rentals.schemas.occupancy import OccupancyInput
from rentals.services.occupancy import (
    OCCUPANCY_ACTIONS,
    has_meaningful_value,
    resolve_occupancy,
    resolve_state,
)

TODAY = date(2024, 6, 15)


def _facts(**values) -> OccupancyInput:
    values.setdefault("tenant_name", "Jonas Jonaitis")
    values.setdefault("reference_date", TODAY)
    return OccupancyInput(**values)


class TestResolveState:
    """Tests for resolve_state()."""

    @pytest.mark.parametrize("name", [None, "", "   ", "Laisvas", "VACANT"])
    def test_vacant_names(self, name: str | None) -> None:
        """No tenant or a placeholder name means vacant."""
        assert resolve_state(_facts(tenant_name=name)) == OccupancyState.VACANT

    def test_vacant_status(self) -> None:
        """An explicit vacant status wins over a named tenant."""
        assert resolve_state(_facts(tenant_status="Vacant")) == OccupancyState.VACANT

    def test_vacant_short_circuits(self) -> None:
        """Vacancy is decided before any date is looked at."""
        facts = _facts(tenant_name="laisvas", lease_start=date(2025, 1, 1), lease_end=date(2020, 1, 1))
        assert resolve_state(facts) == OccupancyState.VACANT

    def test_reserved(self) -> None:
        """A lease that has not started yet is a reservation."""
        assert resolve_state(_facts(lease_start=date(2024, 7, 1))) == OccupancyState.RESERVED

    def test_occupied(self) -> None:
        """A running lease with no move-out is occupied."""
        facts = _facts(lease_start=date(2024, 1, 1), lease_end=date(2024, 12, 31))
        assert resolve_state(facts) == OccupancyState.OCCUPIED

    def test_occupied_on_lease_end_day(self) -> None:
        """The last day of the lease still counts as occupied."""
        facts = _facts(lease_start=date(2024, 1, 1), lease_end=TODAY)
        assert resolve_state(facts) == OccupancyState.OCCUPIED

    def test_notice_given(self) -> None:
        """A planned move-out still ahead means notice was given."""
        facts = _facts(lease_start=date(2024, 1, 1), move_out_planned=date(2024, 7, 1))
        assert resolve_state(facts) == OccupancyState.NOTICE_GIVEN

    def test_notice_given_on_move_out_day(self) -> None:
        """On the move-out day the tenant is still moving out."""
        facts = _facts(move_out_planned=TODAY, move_out_status="scheduled")
        assert resolve_state(facts) == OccupancyState.NOTICE_GIVEN

    def test_moved_out_pending(self) -> None:
        """A past move-out with a status awaits close-out."""
        facts = _facts(move_out_planned=date(2024, 6, 1), move_out_status="inspection")
        assert resolve_state(facts) == OccupancyState.MOVED_OUT_PENDING

    def test_move_out_beats_lease_end(self) -> None:
        """Move-out data is checked before the raw lease end."""
        facts = _facts(
            lease_end=date(2024, 5, 1),
            move_out_planned=date(2024, 8, 1),
        )
        assert resolve_state(facts) == OccupancyState.NOTICE_GIVEN

    def test_past_move_out_without_status_uses_lease(self) -> None:
        """A past move-out date alone does not close out the tenancy."""
        facts = _facts(move_out_planned=date(2024, 6, 1), move_out_status="none")
        assert resolve_state(facts) == OccupancyState.OCCUPIED

    def test_expired_lease(self) -> None:
        """A lease that ended awaits close-out."""
        assert resolve_state(_facts(lease_end=date(2024, 6, 14))) == OccupancyState.MOVED_OUT_PENDING

    def test_time_of_day_ignored(self) -> None:
        """Datetimes are compared by calendar date only."""
        facts = _facts(lease_end=TODAY, reference_date=datetime(2024, 6, 15, 23, 59))
        assert resolve_state(facts) == OccupancyState.OCCUPIED


class TestResolveOccupancy:
    """Tests for the resolved state with display data."""

    def test_display_data(self) -> None:
        """Each state carries a label, a color and its actions."""
        result = resolve_occupancy(_facts(move_out_planned=date(2024, 7, 1)))
        assert result.state == OccupancyState.NOTICE_GIVEN
        assert result.label == "Moving out"
        assert result.color == "amber"
        assert result.allowed_actions == OCCUPANCY_ACTIONS[OccupancyState.NOTICE_GIVEN]

    def test_every_state_has_actions(self) -> None:
        """No state is left without workflow actions."""
        assert set(OCCUPANCY_ACTIONS) == set(OccupancyState)


def test_has_meaningful_value() -> None:
    """Blank and literal 'none' values carry no information."""
    assert has_meaningful_value("scheduled")
    assert not has_meaningful_value(None)
    assert not has_meaningful_value("  ")
    assert not has_meaningful_value("None")
