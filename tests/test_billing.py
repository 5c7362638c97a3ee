"""Tests for apartment bill assembly."""

from decimal import Decimal

import pytest

from rentals.models.enums import (
    AllocationBasis,
    ApprovalStatus,
    DistributionMethod,
    MeterScope,
)
from rentals.schemas.billing import AllocationContext
from rentals.schemas.meter import CanonicalMeter
from rentals.schemas.meter_reading import ReadingSnapshot
from rentals.services.billing import build_apartment_bill
from rentals.services.reading_source import InMemoryReadingSource

APARTMENT_ID = 7


@pytest.fixture
def meters() -> list[CanonicalMeter]:
    """One meter of each scope."""
    return [
        CanonicalMeter(
            id=1,
            name="Cold water",
            address_id=1,
            scope=MeterScope.APARTMENT,
            distribution_method=DistributionMethod.PER_CONSUMPTION,
            price_per_unit=Decimal("2.00"),
        ),
        CanonicalMeter(
            id=2,
            name="Elevator",
            address_id=1,
            scope=MeterScope.BUILDING,
            distribution_method=DistributionMethod.PER_APARTMENT,
            price_per_unit=Decimal("1.00"),
        ),
        CanonicalMeter(
            id=3,
            name="Internet",
            address_id=1,
            scope=MeterScope.NONE,
            distribution_method=DistributionMethod.FIXED_SPLIT,
            fixed_price=Decimal("10.00"),
        ),
    ]


class TestBuildApartmentBill:
    """Tests for build_apartment_bill()."""

    def test_full_bill(self, meters: list[CanonicalMeter]) -> None:
        """Readings are looked up per scope and every line is allocated."""
        source = InMemoryReadingSource()
        source.add(1, ReadingSnapshot(current_value=Decimal("15"), previous_value=Decimal("5")), APARTMENT_ID)
        source.add(2, ReadingSnapshot(current_value=Decimal("300"), previous_value=Decimal("100")))

        bill = build_apartment_bill(
            APARTMENT_ID, "2024-03", meters, source, AllocationContext(apartment_count=2)
        )

        amounts = {line.name: line.allocation.amount for line in bill.lines}
        assert amounts == {
            "Cold water": Decimal("20.00"),
            "Elevator": Decimal("100.00"),
            "Internet": Decimal("10.00"),
        }
        assert bill.total == Decimal("130.00")
        assert bill.pending_meters == []
        assert bill.has_estimates is False
        assert bill.lines[2].status_label == "fixed fee"
        assert bill.lines[1].method_label == "Per apartment"
        assert bill.warnings == []

    def test_pending_meters_listed(self, meters: list[CanonicalMeter]) -> None:
        """Meters without an approved reading are reported as pending."""
        source = InMemoryReadingSource()
        source.add(
            1,
            ReadingSnapshot(
                current_value=Decimal("15"),
                previous_value=Decimal("5"),
                approval_status=ApprovalStatus.PENDING_APPROVAL,
            ),
            APARTMENT_ID,
        )

        bill = build_apartment_bill(
            APARTMENT_ID, "2024-03", meters, source, AllocationContext(apartment_count=2)
        )

        assert bill.pending_meters == ["Cold water", "Elevator"]
        assert bill.total == Decimal("10.00")
        assert bill.lines[0].reading_status == ApprovalStatus.PENDING_APPROVAL
        assert bill.lines[0].consumption is None

    def test_no_apartments_warns(self, meters: list[CanonicalMeter]) -> None:
        """An address with no apartments is flagged on the bill."""
        bill = build_apartment_bill(
            APARTMENT_ID, "2024-03", meters, InMemoryReadingSource(), AllocationContext(apartment_count=0)
        )
        assert bill.warnings
        assert all(line.allocation.basis != AllocationBasis.EQUAL_SPLIT for line in bill.lines)


class TestInMemoryReadingSource:
    """Tests for the in-memory reading source."""

    def test_falls_back_to_building_reading(self) -> None:
        """Apartment lookups fall back to the building-wide reading."""
        snapshot = ReadingSnapshot(current_value=Decimal("2"), previous_value=Decimal("1"))
        source = InMemoryReadingSource({(5, None): snapshot})
        assert source.latest(5, 9) == snapshot
        assert source.latest(6, 9) is None


def test_precondition_findings_reported() -> None:
    """Methods the building data cannot support are listed as warnings."""
    meter = CanonicalMeter(
        id=4,
        name="Stairwell heating",
        address_id=1,
        scope=MeterScope.BUILDING,
        distribution_method=DistributionMethod.PER_AREA,
        price_per_unit=Decimal("1"),
    )
    bill = build_apartment_bill(
        APARTMENT_ID,
        "2024-03",
        [meter],
        InMemoryReadingSource(),
        AllocationContext(apartment_count=2, total_area=Decimal("0")),
    )
    assert bill.warnings == ["Stairwell heating: Apartment areas are missing"]
