"""
Interval model shared by bookings and services.

All intervals are CLOSED: [start_time, end_time], both endpoints inclusive.
Two intervals overlap iff  a.start <= b.end AND a.end >= b.start, so touching endpoints conflict.
This is the only overlap predicate in the codebase; the SQL side uses `overlap_criteria()`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from rentfleet.errors import InvalidIntervalError
from rentfleet.models.enums import BookingStatus, IntervalKind, ServiceStatus


def validate_bounds(start_time: datetime, end_time: datetime):
    if start_time is None or end_time is None:
        raise InvalidIntervalError("Both start_time and end_time are required")
    if start_time > end_time:
        raise InvalidIntervalError(
            f"start_time {start_time.isoformat()} is after end_time {end_time.isoformat()}"
        )


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start <= b_end and a_end >= b_start


def overlap_criteria(model, start_time: datetime, end_time: datetime):
    """SQLAlchemy criteria: rows of `model` whose interval overlaps [start_time, end_time]."""
    return (model.start_time <= end_time, model.end_time >= start_time)


@dataclass(frozen=True)
class Interval:
    vehicle_id: int
    start_time: datetime
    end_time: datetime
    status: Optional[Union[BookingStatus, ServiceStatus]] = None
    kind: IntervalKind = IntervalKind.BOOKING
    source_id: Optional[int] = None

    def __post_init__(self):
        validate_bounds(self.start_time, self.end_time)

    @classmethod
    def of_booking(cls, booking) -> "Interval":
        return cls(booking.vehicle_id, booking.start_time, booking.end_time,
                   booking.status, IntervalKind.BOOKING, booking.id)

    @classmethod
    def of_service(cls, service) -> "Interval":
        return cls(service.vehicle_id, service.start_time, service.end_time,
                   service.status, IntervalKind.SERVICE, service.id)

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start_time, self.end_time, other.start_time, other.end_time)

    def contains(self, instant: datetime) -> bool:
        return self.start_time <= instant <= self.end_time

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "id": self.source_id,
            "vehicle_id": self.vehicle_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "status": self.status.value if self.status is not None else None,
        }

    def __str__(self):
        return (f"{self.kind.value} #{self.source_id} on vehicle {self.vehicle_id} "
                f"[{self.start_time.isoformat()} .. {self.end_time.isoformat()}]")
