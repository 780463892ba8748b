"""Read-only availability check: would a booking or service for this window be accepted?"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from rentfleet.database import get_db
from rentfleet.models.enums import IntervalKind
from rentfleet.schemas.availability import AvailabilityOut
from rentfleet.services.conflict_checker import check_availability
from rentfleet.utils.clock import to_utc_naive

router = APIRouter()


@router.get("/availability", response_model=AvailabilityOut, summary="Check a vehicle for conflicts")
def get_availability(vehicle_id: int, start_time: datetime, end_time: datetime,
                     kind: IntervalKind = IntervalKind.BOOKING,
                     db: Session = Depends(get_db)):
    result = check_availability(db, vehicle_id, to_utc_naive(start_time), to_utc_naive(end_time), kind)
    return {"vehicle_id": vehicle_id, "kind": kind.value, **result.to_dict()}
