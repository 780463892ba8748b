from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ConflictOut(BaseModel):
    kind: str
    id: Optional[int]
    vehicle_id: int
    start_time: datetime
    end_time: datetime
    status: Optional[str]


class AvailabilityOut(BaseModel):
    vehicle_id: int
    kind: str
    ok: bool
    reason: Optional[str] = None
    conflict: Optional[ConflictOut] = None


class ReconciliationReportOut(BaseModel):
    now: datetime
    bookings_updated: int
    services_updated: int
    vehicles_updated: int
