"""Where the allocator gets its readings from."""

from typing import Protocol

from sqlalchemy import and_
from sqlalchemy.orm import Session

from rentals.models.meter_reading import MeterReading
from rentals.schemas.meter_reading import ReadingSnapshot


class ReadingSource(Protocol):
    """Supplies the latest current/previous pair for a meter."""

    def latest(self, meter_id: int, apartment_id: int | None = None) -> ReadingSnapshot | None:
        """Latest reading for the meter, or None if there is none."""
        ...


class InMemoryReadingSource:
    """Reading source backed by a dict keyed by (meter_id, apartment_id)."""

    def __init__(
        self,
        readings: dict[tuple[int, int | None], ReadingSnapshot] | None = None,
    ) -> None:
        self._readings = dict(readings or {})

    def add(
        self,
        meter_id: int,
        snapshot: ReadingSnapshot,
        apartment_id: int | None = None,
    ) -> None:
        self._readings[(meter_id, apartment_id)] = snapshot

    def latest(self, meter_id: int, apartment_id: int | None = None) -> ReadingSnapshot | None:
        snapshot = self._readings.get((meter_id, apartment_id))
        if snapshot is None and apartment_id is not None:
            snapshot = self._readings.get((meter_id, None))
        return snapshot


class DatabaseReadingSource:
    """Latest reading per meter within one billing period."""

    def __init__(self, db: Session, period: str) -> None:
        self.db = db
        self.period = period

    def latest(self, meter_id: int, apartment_id: int | None = None) -> ReadingSnapshot | None:
        reading = (
            self.db.query(MeterReading)
            .filter(
                and_(
                    MeterReading.meter_id == meter_id,
                    MeterReading.apartment_id == apartment_id,
                    MeterReading.period == self.period,
                )
            )
            .order_by(MeterReading.created_at.desc(), MeterReading.id.desc())
            .first()
        )
        return ReadingSnapshot.model_validate(reading) if reading else None
