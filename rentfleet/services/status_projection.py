"""
Vehicle status projection.

A vehicle's status is a function of its occupying intervals at `now`:
  OUT_OF_ORDER                  → untouched (manual-only)
  occupying booking             → RENTED
  occupying service             → IN_SERVICE
  otherwise                     → AVAILABLE
An occupying interval is a live row in a non-terminal status whose interval contains `now`.
If a booking and a service both occupy the vehicle the booking wins and a warning is logged;
the conflict checker is supposed to make that impossible.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from rentfleet.models.enums import VehicleStatus
from rentfleet.services import repository
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)


def derive_vehicle_status(current: VehicleStatus, has_occupying_booking: bool,
                          has_occupying_service: bool) -> VehicleStatus:
    if current == VehicleStatus.OUT_OF_ORDER:
        return current
    if has_occupying_booking:
        return VehicleStatus.RENTED
    if has_occupying_service:
        return VehicleStatus.IN_SERVICE
    return VehicleStatus.AVAILABLE


def project_vehicle_status(db: Session, vehicle, now: datetime) -> VehicleStatus:
    if vehicle.status == VehicleStatus.OUT_OF_ORDER:
        return vehicle.status
    booking = repository.occupying_booking(db, vehicle.id, now)
    service = repository.occupying_service(db, vehicle.id, now)
    if booking and service:
        logger.warning(f"Vehicle {vehicle.id} occupied by booking {booking.id} and service {service.id} "
                       f"at {now.isoformat()} — projecting RENTED")
    return derive_vehicle_status(vehicle.status, booking is not None, service is not None)


def refresh_vehicle_status(db: Session, vehicle, now: datetime) -> bool:
    """Write the projected status onto the vehicle. Returns True when it changed. Does not commit."""
    projected = project_vehicle_status(db, vehicle, now)
    if projected == vehicle.status:
        return False
    logger.info(f"Vehicle {vehicle.id}: {vehicle.status.value} → {projected.value}")
    vehicle.status = projected
    return True
