"""Billing routes for per-apartment utility costs."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rentals.core.database import get_db
from rentals.schemas.billing import ApartmentBill
from rentals.schemas.meter_reading import PERIOD_PATTERN
from rentals.services import billing as billing_service

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/apartments/{apartment_id}", response_model=ApartmentBill)
def get_apartment_bill(
    apartment_id: int,
    period: str = Query(..., pattern=PERIOD_PATTERN, description="Billing period YYYY-MM"),
    db: Session = Depends(get_db),
) -> ApartmentBill:
    """Utility charges of an apartment for one billing period.

    Per-person and per-area lines are local equal-split estimates and are
    flagged as such.
    """
    return billing_service.get_apartment_bill(db, apartment_id, period)
