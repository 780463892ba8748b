"""
Rental bookings.
POST /bookings: create (409 on overlap or duplicate, 403 for technicians, 404 on unknown ids).
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from rentfleet.config import settings
from rentfleet.database import get_db
from rentfleet.models.enums import BookingStatus
from rentfleet.schemas.booking import BookingCreate, BookingOut, BookingUpdate
from rentfleet.services import booking_service, repository
from rentfleet.utils.clock import to_utc_naive

router = APIRouter()


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings")
def list_bookings(vehicle_id: Optional[int] = None,
                  customer_id: Optional[int] = None,
                  staff_id: Optional[int] = None,
                  status: Optional[BookingStatus] = None,
                  from_time: Optional[datetime] = Query(None, alias="from"),
                  to_time: Optional[datetime] = Query(None, alias="to"),
                  limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
                  offset: int = Query(0, ge=0),
                  db: Session = Depends(get_db)):
    """`from`/`to` keep bookings whose interval overlaps that window."""
    return repository.list_bookings(db, vehicle_id=vehicle_id, customer_id=customer_id, staff_id=staff_id,
                                    status=status, from_time=to_utc_naive(from_time),
                                    to_time=to_utc_naive(to_time), limit=limit, offset=offset)


@router.post("/bookings", response_model=BookingOut, status_code=201, summary="Create a booking")
def create_booking(body: BookingCreate, db: Session = Depends(get_db)):
    return booking_service.create_booking(
        db,
        vehicle_id=body.vehicle_id,
        customer_id=body.customer_id,
        staff_id=body.staff_id,
        start_time=body.start_time,
        end_time=body.end_time,
        cost=body.cost,
    )


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    return booking_service.get_booking(db, booking_id)


@router.patch("/bookings/{booking_id}", response_model=BookingOut, summary="Change dates or cost")
def update_booking(booking_id: int, body: BookingUpdate, db: Session = Depends(get_db)):
    return booking_service.update_booking(db, booking_id, start_time=body.start_time,
                                          end_time=body.end_time, cost=body.cost)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut, summary="Cancel a booking")
def cancel_booking(booking_id: int, db: Session = Depends(get_db)):
    return booking_service.cancel_booking(db, booking_id)


@router.delete("/bookings/{booking_id}", summary="Delete a booking (soft delete)")
def delete_booking(booking_id: int, db: Session = Depends(get_db)):
    booking_service.delete_booking(db, booking_id)
    return {"status": "deleted", "booking_id": booking_id}
