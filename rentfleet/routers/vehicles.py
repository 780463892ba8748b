"""Fleet vehicles: registration, lookup, edits, soft-delete and the out-of-order override."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from rentfleet.config import settings
from rentfleet.database import get_db
from rentfleet.models.enums import VehicleStatus
from rentfleet.schemas.vehicle import VehicleCreate, VehicleOut, VehicleUpdate
from rentfleet.services import repository, vehicle_service

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List vehicles")
def list_vehicles(status: Optional[VehicleStatus] = None,
                  limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
                  offset: int = Query(0, ge=0),
                  db: Session = Depends(get_db)):
    return repository.list_vehicles(db, status=status, limit=limit, offset=offset)


@router.post("/vehicles", response_model=VehicleOut, status_code=201, summary="Register a new vehicle")
def register_vehicle(body: VehicleCreate, db: Session = Depends(get_db)):
    return vehicle_service.register_vehicle(db, **body.model_dump())


@router.get("/vehicles/lookup/{plate}", summary="Look up a license plate")
def lookup_vehicle(plate: str, db: Session = Depends(get_db)):
    vehicle = vehicle_service.lookup_vehicle_by_plate(db, plate)
    if not vehicle:
        return {"plate": plate, "registered": False}
    return {"plate": plate, "registered": True, "id": vehicle.id, "status": vehicle.status.value}


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Get a vehicle")
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return vehicle_service.get_vehicle(db, vehicle_id)


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Edit vehicle attributes")
def update_vehicle(vehicle_id: int, body: VehicleUpdate, db: Session = Depends(get_db)):
    return vehicle_service.update_vehicle(db, vehicle_id, **body.model_dump(exclude_unset=True))


@router.delete("/vehicles/{vehicle_id}", summary="Remove a vehicle (soft delete)")
def delete_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle_service.delete_vehicle(db, vehicle_id)
    return {"status": "deleted", "vehicle_id": vehicle_id}


@router.put("/vehicles/{vehicle_id}/out-of-order", response_model=VehicleOut,
            summary="Take a vehicle out of the rentable fleet")
def mark_out_of_order(vehicle_id: int, db: Session = Depends(get_db)):
    return vehicle_service.mark_out_of_order(db, vehicle_id)


@router.put("/vehicles/{vehicle_id}/return-to-service", response_model=VehicleOut,
            summary="Clear the out-of-order override")
def return_to_service(vehicle_id: int, db: Session = Depends(get_db)):
    return vehicle_service.return_to_service(db, vehicle_id)
