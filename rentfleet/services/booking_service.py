"""
Rental booking workflows: create, update, cancel, soft-delete.

Each write locks the vehicle row first, runs the guards and the conflict check, writes the
booking, reprojects the vehicle status and commits, so two concurrent requests for the same
vehicle cannot both pass the overlap check.
Guard order on create: vehicle → staff → position → customer → duplicate → overlap.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from rentfleet.errors import AlreadyExistsError, FleetError, NotFoundError
from rentfleet.models.booking import Booking
from rentfleet.models.enums import BookingStatus
from rentfleet.services import repository
from rentfleet.services.conflict_checker import evaluate_booking_request
from rentfleet.services.intervals import validate_bounds
from rentfleet.services.lifecycle import BOOKING_OPEN, ensure_cancelable, ensure_editable, next_booking_status
from rentfleet.services.staff_policy import StaffAction, ensure_position_allowed
from rentfleet.services.status_projection import refresh_vehicle_status
from rentfleet.utils.clock import utcnow
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


def price_booking(daily_rate: Optional[Decimal], start_time: datetime, end_time: datetime) -> Optional[Decimal]:
    """Daily rate × started days, minimum one day. None when the vehicle has no rate."""
    if daily_rate is None:
        return None
    days = max(1, math.ceil((end_time - start_time).total_seconds() / _SECONDS_PER_DAY))
    return (Decimal(daily_rate) * days).quantize(Decimal("0.01"))


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = repository.get_booking(db, booking_id)
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


def _locked_vehicle(db: Session, vehicle_id: int):
    vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def _lock_for_write(db: Session, booking_id: int):
    """
    Lock the booking's vehicle, then re-read the booking FOR UPDATE. Status checks run on
    the re-read row, so a cancel committed while we waited for the lock is always seen.
    The vehicle may be None when it was soft-deleted.
    """
    vehicle_id = get_booking(db, booking_id).vehicle_id
    vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
    booking = repository.get_booking(db, booking_id, lock=True)
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking, vehicle


def create_booking(db: Session, vehicle_id: int, customer_id: int, staff_id: int,
                   start_time: datetime, end_time: datetime,
                   cost: Optional[Decimal] = None, now: Optional[datetime] = None) -> Booking:
    now = now or utcnow()
    try:
        validate_bounds(start_time, end_time)
        vehicle = _locked_vehicle(db, vehicle_id)

        staff = repository.get_staff_member(db, staff_id)
        if not staff:
            raise NotFoundError(f"Staff member {staff_id} not found")
        ensure_position_allowed(staff, StaffAction.CREATE_BOOKING)

        if not repository.get_customer(db, customer_id):
            raise NotFoundError(f"Customer {customer_id} not found")

        if repository.booking_duplicate_exists(db, vehicle_id, start_time, end_time):
            raise AlreadyExistsError(
                f"Booking for vehicle {vehicle_id} from {start_time.isoformat()} "
                f"to {end_time.isoformat()} already exists"
            )

        evaluate_booking_request(db, vehicle, start_time, end_time).raise_for_conflict()

        booking = Booking(
            vehicle_id=vehicle_id,
            customer_id=customer_id,
            staff_id=staff_id,
            start_time=start_time,
            end_time=end_time,
            status=next_booking_status(None, start_time, end_time, now),
            cost=cost if cost is not None else price_booking(vehicle.daily_rate, start_time, end_time),
        )
        db.add(booking)
        db.flush()
        refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError as e:
        db.rollback()
        logger.info(f"Booking rejected for vehicle {vehicle_id}: {e.message}")
        raise

    db.refresh(booking)
    logger.info(f"Booking {booking.id} created: vehicle={vehicle_id} customer={customer_id} "
                f"[{start_time.isoformat()} .. {end_time.isoformat()}] status={booking.status.value}")
    return booking


def update_booking(db: Session, booking_id: int, start_time: Optional[datetime] = None,
                   end_time: Optional[datetime] = None, cost: Optional[Decimal] = None,
                   now: Optional[datetime] = None) -> Booking:
    """Operator edit of dates and/or cost. New dates go through the same checks as a new booking."""
    now = now or utcnow()
    try:
        booking, vehicle = _lock_for_write(db, booking_id)
        ensure_editable(booking.status, BOOKING_OPEN, "Booking", booking_id)
        if not vehicle:
            raise NotFoundError(f"Vehicle {booking.vehicle_id} not found")

        new_start = start_time or booking.start_time
        new_end = end_time or booking.end_time
        validate_bounds(new_start, new_end)

        if (new_start, new_end) != (booking.start_time, booking.end_time):
            if repository.booking_duplicate_exists(db, vehicle.id, new_start, new_end, exclude_id=booking.id):
                raise AlreadyExistsError(
                    f"Booking for vehicle {vehicle.id} from {new_start.isoformat()} "
                    f"to {new_end.isoformat()} already exists"
                )
            evaluate_booking_request(db, vehicle, new_start, new_end,
                                     exclude_booking_id=booking.id).raise_for_conflict()
            booking.start_time = new_start
            booking.end_time = new_end
            booking.status = next_booking_status(booking.status, new_start, new_end, now)

        if cost is not None:
            booking.cost = cost

        db.flush()
        refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"Booking {booking.id} updated")
    return booking


def cancel_booking(db: Session, booking_id: int, now: Optional[datetime] = None) -> Booking:
    now = now or utcnow()
    try:
        booking, vehicle = _lock_for_write(db, booking_id)
        ensure_cancelable(booking.status, BOOKING_OPEN, "Booking", booking_id)
        booking.status = BookingStatus.CANCELED
        db.flush()
        if vehicle:
            refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"Booking {booking.id} canceled")
    return booking


def delete_booking(db: Session, booking_id: int, now: Optional[datetime] = None):
    """Soft-delete; the row stays for history but stops blocking and occupying."""
    now = now or utcnow()
    try:
        booking, vehicle = _lock_for_write(db, booking_id)
        booking.mark_deleted(now)
        db.flush()
        if vehicle:
            refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError:
        db.rollback()
        raise
    logger.info(f"Booking {booking_id} deleted")
