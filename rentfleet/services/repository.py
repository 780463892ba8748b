"""
Data-access helpers for vehicles, bookings, services and the people who own them.

Every query here selects live (non-deleted) rows via `Model.live()`; callers never
repeat the soft-delete filter. Status filtering happens in SQL, not in memory.
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from rentfleet.models.booking import Booking
from rentfleet.models.customer import Customer
from rentfleet.models.enums import BookingStatus, ServiceStatus, VehicleStatus
from rentfleet.models.service_record import ServiceRecord
from rentfleet.models.staff_member import StaffMember
from rentfleet.models.vehicle import Vehicle
from rentfleet.services.intervals import overlap_criteria
from rentfleet.services.lifecycle import BOOKING_OPEN, SERVICE_OPEN


# ── Lookups ──────────────────────────────────────────────────────────────────

def get_vehicle(db: Session, vehicle_id: int, lock: bool = False) -> Optional[Vehicle]:
    """
    Live vehicle by id. With lock=True the row is held FOR UPDATE until the transaction
    ends, serialising check-then-insert for the same vehicle.
    """
    q = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.live())
    if lock:
        q = q.with_for_update().populate_existing()
    return q.first()


def get_vehicle_by_plate(db: Session, license_plate: str) -> Optional[Vehicle]:
    return db.query(Vehicle).filter(Vehicle.license_plate == license_plate, Vehicle.live()).first()


def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
    return db.query(Customer).filter(Customer.id == customer_id, Customer.live()).first()


def get_staff_member(db: Session, staff_id: int) -> Optional[StaffMember]:
    return db.query(StaffMember).filter(StaffMember.id == staff_id, StaffMember.live()).first()


def get_booking(db: Session, booking_id: int, lock: bool = False) -> Optional[Booking]:
    """With lock=True the row is re-read FOR UPDATE, overwriting whatever the session had cached."""
    q = db.query(Booking).filter(Booking.id == booking_id, Booking.live())
    if lock:
        q = q.with_for_update().populate_existing()
    return q.first()


def get_service(db: Session, service_id: int, lock: bool = False) -> Optional[ServiceRecord]:
    q = db.query(ServiceRecord).filter(ServiceRecord.id == service_id, ServiceRecord.live())
    if lock:
        q = q.with_for_update().populate_existing()
    return q.first()


# ── Overlap / duplicate queries ─────────────────────────────────────────────

def overlapping_bookings(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                         statuses: Iterable[BookingStatus], exclude_id: Optional[int] = None):
    q = db.query(Booking).filter(
        Booking.vehicle_id == vehicle_id,
        Booking.live(),
        Booking.status.in_(list(statuses)),
        *overlap_criteria(Booking, start_time, end_time),
    )
    if exclude_id is not None:
        q = q.filter(Booking.id != exclude_id)
    return q.order_by(Booking.start_time.asc(), Booking.id.asc())


def overlapping_services(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                         statuses: Iterable[ServiceStatus], exclude_id: Optional[int] = None):
    q = db.query(ServiceRecord).filter(
        ServiceRecord.vehicle_id == vehicle_id,
        ServiceRecord.live(),
        ServiceRecord.status.in_(list(statuses)),
        *overlap_criteria(ServiceRecord, start_time, end_time),
    )
    if exclude_id is not None:
        q = q.filter(ServiceRecord.id != exclude_id)
    return q.order_by(ServiceRecord.start_time.asc(), ServiceRecord.id.asc())


def booking_duplicate_exists(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                             exclude_id: Optional[int] = None) -> bool:
    """Same vehicle, same start, same end. Canceled bookings do not count as duplicates."""
    q = db.query(Booking.id).filter(
        Booking.vehicle_id == vehicle_id,
        Booking.start_time == start_time,
        Booking.end_time == end_time,
        Booking.status != BookingStatus.CANCELED,
        Booking.live(),
    )
    if exclude_id is not None:
        q = q.filter(Booking.id != exclude_id)
    return q.first() is not None


def service_duplicate_exists(db: Session, vehicle_id: int, start_time: datetime, end_time: datetime,
                             description: str, exclude_id: Optional[int] = None) -> bool:
    """Same vehicle, start, end and description. Canceled services do not count as duplicates."""
    q = db.query(ServiceRecord.id).filter(
        ServiceRecord.vehicle_id == vehicle_id,
        ServiceRecord.start_time == start_time,
        ServiceRecord.end_time == end_time,
        ServiceRecord.description == description,
        ServiceRecord.status != ServiceStatus.CANCELED,
        ServiceRecord.live(),
    )
    if exclude_id is not None:
        q = q.filter(ServiceRecord.id != exclude_id)
    return q.first() is not None


# ── Sweep / projection queries ──────────────────────────────────────────────

def open_bookings(db: Session, vehicle_id: Optional[int] = None,
                  customer_id: Optional[int] = None) -> list[Booking]:
    """Live bookings in a non-terminal status."""
    q = db.query(Booking).filter(Booking.live(), Booking.status.in_(list(BOOKING_OPEN)))
    if vehicle_id is not None:
        q = q.filter(Booking.vehicle_id == vehicle_id)
    if customer_id is not None:
        q = q.filter(Booking.customer_id == customer_id)
    return q.order_by(Booking.id.asc()).all()


def open_services(db: Session, vehicle_id: Optional[int] = None) -> list[ServiceRecord]:
    """Live services in a non-terminal status."""
    q = db.query(ServiceRecord).filter(ServiceRecord.live(), ServiceRecord.status.in_(list(SERVICE_OPEN)))
    if vehicle_id is not None:
        q = q.filter(ServiceRecord.vehicle_id == vehicle_id)
    return q.order_by(ServiceRecord.id.asc()).all()


def occupying_booking(db: Session, vehicle_id: int, now: datetime) -> Optional[Booking]:
    return overlapping_bookings(db, vehicle_id, now, now, BOOKING_OPEN).first()


def occupying_service(db: Session, vehicle_id: int, now: datetime) -> Optional[ServiceRecord]:
    return overlapping_services(db, vehicle_id, now, now, SERVICE_OPEN).first()


def vehicle_ids_with_occupying_booking(db: Session, now: datetime) -> set[int]:
    rows = db.query(Booking.vehicle_id).filter(
        Booking.live(),
        Booking.status.in_(list(BOOKING_OPEN)),
        *overlap_criteria(Booking, now, now),
    ).distinct()
    return {row[0] for row in rows}


def vehicle_ids_with_occupying_service(db: Session, now: datetime) -> set[int]:
    rows = db.query(ServiceRecord.vehicle_id).filter(
        ServiceRecord.live(),
        ServiceRecord.status.in_(list(SERVICE_OPEN)),
        *overlap_criteria(ServiceRecord, now, now),
    ).distinct()
    return {row[0] for row in rows}


def live_vehicles(db: Session, lock: bool = False) -> list[Vehicle]:
    """
    All live vehicles in id order. The sweep takes them with lock=True before reading any
    booking or service, so writers (which lock their vehicle first) cannot commit mid-sweep.
    """
    q = db.query(Vehicle).filter(Vehicle.live()).order_by(Vehicle.id.asc())
    if lock:
        q = q.with_for_update().populate_existing()
    return q.all()


# ── Listings ─────────────────────────────────────────────────────────────────

def list_vehicles(db: Session, status: Optional[VehicleStatus] = None, limit: int = 50, offset: int = 0):
    q = db.query(Vehicle).filter(Vehicle.live())
    if status:
        q = q.filter(Vehicle.status == status)
    return q.order_by(Vehicle.id.asc()).offset(offset).limit(limit).all()


def _window_filter(q, model, from_time: Optional[datetime], to_time: Optional[datetime]):
    """Keep rows whose interval overlaps [from_time, to_time]; either bound may be open."""
    if from_time is not None:
        q = q.filter(model.end_time >= from_time)
    if to_time is not None:
        q = q.filter(model.start_time <= to_time)
    return q


def list_bookings(db: Session, vehicle_id: Optional[int] = None, customer_id: Optional[int] = None,
                  staff_id: Optional[int] = None, status: Optional[BookingStatus] = None,
                  from_time: Optional[datetime] = None, to_time: Optional[datetime] = None,
                  limit: int = 50, offset: int = 0):
    q = db.query(Booking).filter(Booking.live())
    if vehicle_id is not None:
        q = q.filter(Booking.vehicle_id == vehicle_id)
    if customer_id is not None:
        q = q.filter(Booking.customer_id == customer_id)
    if staff_id is not None:
        q = q.filter(Booking.staff_id == staff_id)
    if status:
        q = q.filter(Booking.status == status)
    q = _window_filter(q, Booking, from_time, to_time)
    return q.order_by(Booking.start_time.desc()).offset(offset).limit(limit).all()


def list_services(db: Session, vehicle_id: Optional[int] = None, staff_id: Optional[int] = None,
                  status: Optional[ServiceStatus] = None, description: Optional[str] = None,
                  from_time: Optional[datetime] = None, to_time: Optional[datetime] = None,
                  limit: int = 50, offset: int = 0):
    q = db.query(ServiceRecord).filter(ServiceRecord.live())
    if vehicle_id is not None:
        q = q.filter(ServiceRecord.vehicle_id == vehicle_id)
    if staff_id is not None:
        q = q.filter(ServiceRecord.staff_id == staff_id)
    if status:
        q = q.filter(ServiceRecord.status == status)
    if description:
        q = q.filter(ServiceRecord.description.ilike(f"%{description}%"))
    q = _window_filter(q, ServiceRecord, from_time, to_time)
    return q.order_by(ServiceRecord.start_time.desc()).offset(offset).limit(limit).all()


def list_customers(db: Session, limit: int = 50, offset: int = 0):
    return db.query(Customer).filter(Customer.live()).order_by(Customer.id.asc()).offset(offset).limit(limit).all()


def list_staff(db: Session, limit: int = 50, offset: int = 0):
    return (db.query(StaffMember).filter(StaffMember.live())
            .order_by(StaffMember.id.asc()).offset(offset).limit(limit).all())
