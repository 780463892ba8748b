"""
Vehicle registration and operator overrides.
Status is never set here directly except for the OUT_OF_ORDER override; leaving that
state hands the vehicle back to the status projection.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from rentfleet.errors import AlreadyExistsError, NotAvailableError, NotFoundError
from rentfleet.models.enums import VehicleStatus
from rentfleet.models.vehicle import Vehicle
from rentfleet.services import repository
from rentfleet.services.intervals import Interval
from rentfleet.services.status_projection import refresh_vehicle_status
from rentfleet.utils.clock import utcnow
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)


def lookup_vehicle_by_plate(db: Session, license_plate: str) -> Optional[Vehicle]:
    """Find a live vehicle by license plate. Returns None if not found."""
    return repository.get_vehicle_by_plate(db, license_plate)


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = repository.get_vehicle(db, vehicle_id)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def register_vehicle(db: Session, license_plate: str, brand: str, model: str,
                     year: Optional[int] = None, mileage: Optional[int] = None,
                     daily_rate: Optional[Decimal] = None) -> Vehicle:
    if db.query(Vehicle.id).filter(Vehicle.license_plate == license_plate).first():
        raise AlreadyExistsError(f"Vehicle with license plate {license_plate} already exists")
    vehicle = Vehicle(
        license_plate=license_plate,
        brand=brand,
        model=model,
        year=year,
        mileage=mileage,
        daily_rate=daily_rate,
        status=VehicleStatus.AVAILABLE,
    )
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    logger.info(f"Vehicle {vehicle.id} registered: {license_plate} {brand} {model}")
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, license_plate: Optional[str] = None,
                   brand: Optional[str] = None, model: Optional[str] = None, year: Optional[int] = None,
                   mileage: Optional[int] = None, daily_rate: Optional[Decimal] = None) -> Vehicle:
    """Edit descriptive attributes. None leaves a field unchanged; status is never touched here."""
    vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")

    if license_plate and license_plate != vehicle.license_plate:
        taken = db.query(Vehicle.id).filter(Vehicle.license_plate == license_plate, Vehicle.id != vehicle_id).first()
        if taken:
            db.rollback()
            raise AlreadyExistsError(f"Vehicle with license plate {license_plate} already exists")
        vehicle.license_plate = license_plate

    for field, value in (("brand", brand), ("model", model), ("year", year),
                         ("mileage", mileage), ("daily_rate", daily_rate)):
        if value is not None:
            setattr(vehicle, field, value)

    db.commit()
    db.refresh(vehicle)
    logger.info(f"Vehicle {vehicle_id} updated")
    return vehicle


def delete_vehicle(db: Session, vehicle_id: int, now: Optional[datetime] = None):
    """Soft-delete a vehicle. Refused while it still has open bookings or services."""
    now = now or utcnow()
    vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")

    bookings = repository.open_bookings(db, vehicle_id)
    if bookings:
        db.rollback()
        raise NotAvailableError(f"Vehicle {vehicle_id} still has open bookings",
                                conflict=Interval.of_booking(bookings[0]))
    services = repository.open_services(db, vehicle_id)
    if services:
        db.rollback()
        raise NotAvailableError(f"Vehicle {vehicle_id} still has open services",
                                conflict=Interval.of_service(services[0]))

    vehicle.mark_deleted(now)
    db.commit()
    logger.info(f"Vehicle {vehicle_id} deleted")


def mark_out_of_order(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    vehicle.status = VehicleStatus.OUT_OF_ORDER
    db.commit()
    db.refresh(vehicle)
    logger.warning(f"Vehicle {vehicle_id} marked OUT_OF_ORDER")
    return vehicle


def return_to_service(db: Session, vehicle_id: int, now: Optional[datetime] = None) -> Vehicle:
    """Clear the OUT_OF_ORDER override and reproject the status from the vehicle's intervals."""
    now = now or utcnow()
    vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    if vehicle.status == VehicleStatus.OUT_OF_ORDER:
        vehicle.status = VehicleStatus.AVAILABLE
        refresh_vehicle_status(db, vehicle, now)
        logger.info(f"Vehicle {vehicle_id} back in fleet as {vehicle.status.value}")
    db.commit()
    db.refresh(vehicle)
    return vehicle
