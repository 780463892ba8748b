"""
Maintenance services.
POST /services: register (409 on overlap or duplicate, 403 for sales representatives).
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from rentfleet.config import settings
from rentfleet.database import get_db
from rentfleet.models.enums import ServiceStatus
from rentfleet.schemas.service_record import ServiceCreate, ServiceOut, ServiceUpdate
from rentfleet.services import repository, service_record_service
from rentfleet.utils.clock import to_utc_naive

router = APIRouter()


@router.get("/services", response_model=list[ServiceOut], summary="List maintenance services")
def list_services(vehicle_id: Optional[int] = None,
                  staff_id: Optional[int] = None,
                  status: Optional[ServiceStatus] = None,
                  description: Optional[str] = Query(None, description="Case-insensitive substring"),
                  from_time: Optional[datetime] = Query(None, alias="from"),
                  to_time: Optional[datetime] = Query(None, alias="to"),
                  limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
                  offset: int = Query(0, ge=0),
                  db: Session = Depends(get_db)):
    return repository.list_services(db, vehicle_id=vehicle_id, staff_id=staff_id, status=status,
                                    description=description, from_time=to_utc_naive(from_time),
                                    to_time=to_utc_naive(to_time), limit=limit, offset=offset)


@router.post("/services", response_model=ServiceOut, status_code=201, summary="Register a service")
def create_service(body: ServiceCreate, db: Session = Depends(get_db)):
    return service_record_service.create_service(
        db,
        vehicle_id=body.vehicle_id,
        staff_id=body.staff_id,
        start_time=body.start_time,
        end_time=body.end_time,
        description=body.description,
        cost=body.cost,
    )


@router.get("/services/{service_id}", response_model=ServiceOut)
def get_service(service_id: int, db: Session = Depends(get_db)):
    return service_record_service.get_service(db, service_id)


@router.patch("/services/{service_id}", response_model=ServiceOut, summary="Change dates, description or cost")
def update_service(service_id: int, body: ServiceUpdate, db: Session = Depends(get_db)):
    return service_record_service.update_service(db, service_id, start_time=body.start_time,
                                                 end_time=body.end_time, description=body.description,
                                                 cost=body.cost)


@router.post("/services/{service_id}/cancel", response_model=ServiceOut, summary="Cancel a service")
def cancel_service(service_id: int, db: Session = Depends(get_db)):
    return service_record_service.cancel_service(db, service_id)


@router.delete("/services/{service_id}", summary="Delete a service (soft delete)")
def delete_service(service_id: int, db: Session = Depends(get_db)):
    service_record_service.delete_service(db, service_id)
    return {"status": "deleted", "service_id": service_id}
