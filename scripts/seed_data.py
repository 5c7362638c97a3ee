"""Seed script to populate the database with a sample building."""

from datetime import date
from decimal import Decimal

from rentals.core.database import Base, engine, session_scope
from rentals.core.logging import configure_logging
from rentals.models import address, apartment, meter, meter_reading, tenancy  # noqa: F401
from rentals.models.address import Address
from rentals.models.enums import CollectionMode, DistributionMethod, SubmittedBy
from rentals.schemas.address import AddressCreate, ApartmentCreate
from rentals.schemas.meter import AddressMeterCreate
from rentals.schemas.meter_reading import ReadingSubmission
from rentals.schemas.occupancy import MoveOutCreate, TenancyCreate
from rentals.services import address as address_service
from rentals.services import billing as billing_service
from rentals.services import meter as meter_service
from rentals.services import meter_reading as reading_service
from rentals.services import tenancy as tenancy_service
from rentals.services.formatting import format_currency, format_period, previous_period

PERIOD = "2024-03"


def seed_database() -> None:
    """Seed the database with sample data."""
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        # Check if data already exists
        if db.query(Address).first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")

        building = address_service.create_address(
            db, AddressCreate(display_name="Vilniaus g. 12", address="Vilniaus g. 12, Vilnius")
        )
        print(f"Created address: {building.display_name} (ID: {building.id})")

        apartments = [
            address_service.create_apartment(
                db,
                building.id,
                ApartmentCreate(number=number, area=Decimal(area), person_count=persons),
            )
            for number, area, persons in (("1", "48.5", 2), ("2", "63.0", 3), ("3", "55.2", 1))
        ]
        print(f"Created {len(apartments)} apartments")

        water = meter_service.create_address_meter(
            db,
            AddressMeterCreate(
                address_id=building.id,
                name="Šaltas vanduo",
                distribution_method=DistributionMethod.PER_CONSUMPTION,
                price_per_unit=Decimal("1.92"),
                collection_mode=CollectionMode.TENANT_PHOTO,
                requires_photo=True,
            ),
        )
        heating = meter_service.create_address_meter(
            db,
            AddressMeterCreate(
                address_id=building.id,
                name="Šildymas",
                unit="kWh",
                distribution_method=DistributionMethod.PER_AREA,
                price_per_unit=Decimal("0.11"),
            ),
        )
        elevator = meter_service.create_address_meter(
            db,
            AddressMeterCreate(
                address_id=building.id,
                name="Liftas",
                unit="kWh",
                distribution_method=DistributionMethod.PER_APARTMENT,
                price_per_unit=Decimal("0.24"),
            ),
        )
        meter_service.create_address_meter(
            db,
            AddressMeterCreate(
                address_id=building.id,
                name="Internetas",
                unit="other",
                distribution_method=DistributionMethod.FIXED_SPLIT,
                fixed_price=Decimal("15.00"),
            ),
        )
        print("Created 4 meters: water, heating, elevator, internet")

        for shared, current, previous in ((heating, "18450", "16200"), (elevator, "3120", "2980")):
            reading_service.submit_reading(
                db,
                ReadingSubmission(
                    meter_id=shared.id,
                    period=PERIOD,
                    reading_date=date(2024, 3, 31),
                    current_value=Decimal(current),
                    previous_value=Decimal(previous),
                    submitted_by=SubmittedBy.LANDLORD,
                ),
            )

        for offset, unit in enumerate(apartments):
            reading_service.submit_reading(
                db,
                ReadingSubmission(
                    meter_id=water.id,
                    apartment_id=unit.id,
                    period=previous_period(PERIOD),
                    reading_date=date(2024, 2, 29),
                    current_value=Decimal(100 + offset * 20),
                    previous_value=Decimal("0"),
                    submitted_by=SubmittedBy.LANDLORD,
                ),
            )
            reading_service.submit_reading(
                db,
                ReadingSubmission(
                    meter_id=water.id,
                    apartment_id=unit.id,
                    period=PERIOD,
                    reading_date=date(2024, 3, 31),
                    current_value=Decimal(106 + offset * 25),
                    submitted_by=SubmittedBy.TENANT,
                    photo_url=f"https://example.com/photos/{unit.number}-{PERIOD}.jpg",
                ),
            )
        print("Created readings for February and March (March water readings await review)")

        tenancy_service.create_tenancy(
            db,
            apartments[0].id,
            TenancyCreate(
                tenant_name="Ona Petraitienė",
                lease_start=date(2023, 9, 1),
                lease_end=date(2024, 8, 31),
                monthly_rent=Decimal("650"),
                deposit=Decimal("650"),
            ),
        )
        tenancy_service.create_tenancy(
            db,
            apartments[1].id,
            TenancyCreate(
                tenant_name="Jonas Jonaitis",
                lease_start=date(2022, 5, 1),
                monthly_rent=Decimal("780"),
            ),
        )
        tenancy_service.record_move_out(
            db,
            apartments[1].id,
            MoveOutCreate(
                notice_date=date(2024, 3, 1),
                planned_date=date(2024, 4, 30),
                status="scheduled",
            ),
        )
        print("Created 2 tenancies; apartment 3 is vacant")

        print("\nSeed data created successfully!")
        print(f"\nAddress ID: {building.id}")
        for unit in apartments:
            bill = billing_service.get_apartment_bill(db, unit.id, PERIOD)
            print(
                f"Apartment {unit.number} (ID: {unit.id}): "
                f"{format_currency(bill.total)} for {format_period(PERIOD)}, "
                f"pending: {bill.pending_meters}"
            )


if __name__ == "__main__":
    configure_logging()
    seed_database()
