"""
Booking/service conflict checker.

Pure reads: nothing here writes to the session. A detected overlap is returned as an
`Availability` value carrying the offending interval; creation paths turn it into
NotAvailableError via `Availability.raise_for_conflict()`.

Rules for a candidate interval C on vehicle V:
  booking: blocked by V's bookings in {ACTIVE, RESERVED} overlapping C,
             by V's open services overlapping C,
             and by V being OUT_OF_ORDER.
  service: blocked by a booking in {ACTIVE, RESERVED} that covers "now",
             by V's bookings in {ACTIVE, RESERVED} overlapping C,
             and by V's services in {RESERVED, ACTIVE} overlapping C.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from rentfleet.errors import NotAvailableError, NotFoundError
from rentfleet.models.enums import BookingStatus, IntervalKind, ServiceStatus, VehicleStatus
from rentfleet.services import repository
from rentfleet.services.intervals import Interval, validate_bounds
from rentfleet.services.lifecycle import BOOKING_BLOCKING, SERVICE_BLOCKING, SERVICE_OPEN
from rentfleet.utils.clock import utcnow
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Availability:
    ok: bool
    reason: Optional[str] = None
    conflict: Optional[Interval] = None

    def raise_for_conflict(self):
        if not self.ok:
            raise NotAvailableError(self.reason, conflict=self.conflict)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "reason": self.reason,
            "conflict": self.conflict.to_dict() if self.conflict else None,
        }


AVAILABLE = Availability(ok=True)


def _coerce(enum_cls, statuses: Iterable) -> set:
    """Map a mixed status set onto one entity's enum by value, dropping names it lacks."""
    members = {m.value for m in enum_cls}
    return {enum_cls(getattr(s, "value", s)) for s in statuses if getattr(s, "value", s) in members}


def find_booking_conflict(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                          blocking_statuses: Iterable[BookingStatus] = BOOKING_BLOCKING,
                          exclude_id: Optional[int] = None) -> Optional[Interval]:
    """First existing booking on the vehicle overlapping [start_time, end_time], if any."""
    booking = repository.overlapping_bookings(
        db, vehicle_id, start_time, end_time, _coerce(BookingStatus, blocking_statuses), exclude_id
    ).first()
    return Interval.of_booking(booking) if booking else None


def find_service_conflict(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                          blocking_statuses: Iterable[ServiceStatus] = SERVICE_BLOCKING,
                          exclude_id: Optional[int] = None) -> Optional[Interval]:
    """First existing service on the vehicle overlapping [start_time, end_time], if any."""
    service = repository.overlapping_services(
        db, vehicle_id, start_time, end_time, _coerce(ServiceStatus, blocking_statuses), exclude_id
    ).first()
    return Interval.of_service(service) if service else None


def has_conflict(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                 blocking_statuses: Iterable) -> bool:
    """
    True if any live booking or service on the vehicle, with a status in `blocking_statuses`,
    overlaps the closed candidate interval.
    """
    validate_bounds(start_time, end_time)
    statuses = list(blocking_statuses)
    return (
        find_booking_conflict(db, vehicle_id, start_time, end_time, statuses) is not None
        or find_service_conflict(db, vehicle_id, start_time, end_time, statuses) is not None
    )


def evaluate_booking_request(db: Session, vehicle, start_time: datetime, end_time: datetime,
                             exclude_booking_id: Optional[int] = None) -> Availability:
    if vehicle.status == VehicleStatus.OUT_OF_ORDER:
        return Availability(False, f"Vehicle {vehicle.id} is out of order")

    conflict = find_booking_conflict(db, vehicle.id, start_time, end_time,
                                     BOOKING_BLOCKING, exclude_booking_id)
    if conflict:
        return Availability(False, f"Vehicle {vehicle.id} is reserved during this period: {conflict}", conflict)

    conflict = find_service_conflict(db, vehicle.id, start_time, end_time, SERVICE_OPEN)
    if conflict:
        return Availability(False, f"Vehicle {vehicle.id} is in service during this period: {conflict}", conflict)

    return AVAILABLE


def evaluate_service_request(db: Session, vehicle, start_time: datetime, end_time: datetime,
                             now: datetime, exclude_service_id: Optional[int] = None) -> Availability:
    current = find_booking_conflict(db, vehicle.id, now, now, BOOKING_BLOCKING)
    if current:
        return Availability(False, f"Vehicle {vehicle.id} is currently booked: {current}", current)

    conflict = find_booking_conflict(db, vehicle.id, start_time, end_time, BOOKING_BLOCKING)
    if conflict:
        return Availability(False, f"Vehicle {vehicle.id} is reserved during this period: {conflict}", conflict)

    conflict = find_service_conflict(db, vehicle.id, start_time, end_time,
                                     SERVICE_BLOCKING, exclude_service_id)
    if conflict:
        return Availability(False, f"Vehicle {vehicle.id} is already scheduled for service: {conflict}", conflict)

    return AVAILABLE


def check_availability(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                       kind: IntervalKind, now: Optional[datetime] = None) -> Availability:
    """Whether a new booking or service for [start_time, end_time] could be accepted right now."""
    validate_bounds(start_time, end_time)
    vehicle = repository.get_vehicle(db, vehicle_id)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")

    if IntervalKind(kind) == IntervalKind.BOOKING:
        result = evaluate_booking_request(db, vehicle, start_time, end_time)
    else:
        result = evaluate_service_request(db, vehicle, start_time, end_time, now or utcnow())

    logger.debug(f"Availability vehicle={vehicle_id} kind={IntervalKind(kind).value} "
                 f"[{start_time} .. {end_time}] → ok={result.ok}")
    return result
