"""
Maintenance service workflows: create, update, cancel, soft-delete.
Same locking and projection discipline as booking_service.
Guard order on create: vehicle → staff → position → duplicate → overlap.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from rentfleet.errors import AlreadyExistsError, FleetError, NotFoundError
from rentfleet.models.enums import ServiceStatus
from rentfleet.models.service_record import ServiceRecord
from rentfleet.services import repository
from rentfleet.services.conflict_checker import evaluate_service_request
from rentfleet.services.intervals import validate_bounds
from rentfleet.services.lifecycle import SERVICE_OPEN, ensure_cancelable, ensure_editable, next_service_status
from rentfleet.services.staff_policy import StaffAction, ensure_position_allowed
from rentfleet.services.status_projection import refresh_vehicle_status
from rentfleet.utils.clock import utcnow
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)


def get_service(db: Session, service_id: int) -> ServiceRecord:
    service = repository.get_service(db, service_id)
    if not service:
        raise NotFoundError(f"Service {service_id} not found")
    return service


def _lock_for_write(db: Session, service_id: int):
    """Lock the service's vehicle first, then re-read the service FOR UPDATE."""
    vehicle_id = get_service(db, service_id).vehicle_id
    vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
    service = repository.get_service(db, service_id, lock=True)
    if not service:
        raise NotFoundError(f"Service {service_id} not found")
    return service, vehicle


def _duplicate_error(vehicle_id, start_time, end_time, description) -> AlreadyExistsError:
    return AlreadyExistsError(
        f"Service for vehicle {vehicle_id} from {start_time.isoformat()} to {end_time.isoformat()} "
        f"with description '{description}' already exists"
    )


def create_service(db: Session, vehicle_id: int, staff_id: int, start_time: datetime,
                   end_time: datetime, description: str, cost: Optional[Decimal] = None,
                   now: Optional[datetime] = None) -> ServiceRecord:
    now = now or utcnow()
    try:
        validate_bounds(start_time, end_time)
        vehicle = repository.get_vehicle(db, vehicle_id, lock=True)
        if not vehicle:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")

        staff = repository.get_staff_member(db, staff_id)
        if not staff:
            raise NotFoundError(f"Staff member {staff_id} not found")
        ensure_position_allowed(staff, StaffAction.CREATE_SERVICE)

        if repository.service_duplicate_exists(db, vehicle_id, start_time, end_time, description):
            raise _duplicate_error(vehicle_id, start_time, end_time, description)

        evaluate_service_request(db, vehicle, start_time, end_time, now).raise_for_conflict()

        service = ServiceRecord(
            vehicle_id=vehicle_id,
            staff_id=staff_id,
            start_time=start_time,
            end_time=end_time,
            description=description,
            status=next_service_status(None, start_time, end_time, now),
            cost=cost,
        )
        db.add(service)
        db.flush()
        refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError as e:
        db.rollback()
        logger.info(f"Service rejected for vehicle {vehicle_id}: {e.message}")
        raise

    db.refresh(service)
    logger.info(f"Service {service.id} registered: vehicle={vehicle_id} '{description}' "
                f"[{start_time.isoformat()} .. {end_time.isoformat()}] status={service.status.value}")
    return service


def update_service(db: Session, service_id: int, start_time: Optional[datetime] = None,
                   end_time: Optional[datetime] = None, description: Optional[str] = None,
                   cost: Optional[Decimal] = None, now: Optional[datetime] = None) -> ServiceRecord:
    now = now or utcnow()
    try:
        service, vehicle = _lock_for_write(db, service_id)
        ensure_editable(service.status, SERVICE_OPEN, "Service", service_id)
        if not vehicle:
            raise NotFoundError(f"Vehicle {service.vehicle_id} not found")

        new_start = start_time or service.start_time
        new_end = end_time or service.end_time
        new_description = description if description is not None else service.description
        validate_bounds(new_start, new_end)

        if (new_start, new_end, new_description) != (service.start_time, service.end_time, service.description):
            if repository.service_duplicate_exists(db, vehicle.id, new_start, new_end, new_description,
                                                   exclude_id=service.id):
                raise _duplicate_error(vehicle.id, new_start, new_end, new_description)

        if (new_start, new_end) != (service.start_time, service.end_time):
            evaluate_service_request(db, vehicle, new_start, new_end, now,
                                     exclude_service_id=service.id).raise_for_conflict()
            service.start_time = new_start
            service.end_time = new_end
            service.status = next_service_status(service.status, new_start, new_end, now)

        service.description = new_description
        if cost is not None:
            service.cost = cost

        db.flush()
        refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError:
        db.rollback()
        raise

    db.refresh(service)
    logger.info(f"Service {service.id} updated")
    return service


def cancel_service(db: Session, service_id: int, now: Optional[datetime] = None) -> ServiceRecord:
    now = now or utcnow()
    try:
        service, vehicle = _lock_for_write(db, service_id)
        ensure_cancelable(service.status, SERVICE_OPEN, "Service", service_id)
        service.status = ServiceStatus.CANCELED
        db.flush()
        if vehicle:
            refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError:
        db.rollback()
        raise

    db.refresh(service)
    logger.info(f"Service {service.id} canceled")
    return service


def delete_service(db: Session, service_id: int, now: Optional[datetime] = None):
    now = now or utcnow()
    try:
        service, vehicle = _lock_for_write(db, service_id)
        service.mark_deleted(now)
        db.flush()
        if vehicle:
            refresh_vehicle_status(db, vehicle, now)
        db.commit()
    except FleetError:
        db.rollback()
        raise
    logger.info(f"Service {service_id} deleted")
