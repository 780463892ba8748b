"""Customers and staff members: registration, lookup, edits and soft delete."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from rentfleet.config import settings
from rentfleet.database import get_db
from rentfleet.schemas.people import CustomerCreate, CustomerOut, CustomerUpdate, StaffCreate, StaffOut, StaffUpdate
from rentfleet.services import directory_service, repository

router = APIRouter()


@router.get("/customers", response_model=list[CustomerOut], summary="List customers")
def list_customers(limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
                   offset: int = Query(0, ge=0),
                   db: Session = Depends(get_db)):
    return repository.list_customers(db, limit=limit, offset=offset)


@router.post("/customers", response_model=CustomerOut, status_code=201, summary="Register a customer")
def register_customer(body: CustomerCreate, db: Session = Depends(get_db)):
    return directory_service.register_customer(db, **body.model_dump())


@router.get("/customers/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return directory_service.get_customer(db, customer_id)


@router.patch("/customers/{customer_id}", response_model=CustomerOut, summary="Edit a customer")
def update_customer(customer_id: int, body: CustomerUpdate, db: Session = Depends(get_db)):
    return directory_service.update_customer(db, customer_id, **body.model_dump(exclude_unset=True))


@router.delete("/customers/{customer_id}", summary="Remove a customer (soft delete)")
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    directory_service.delete_customer(db, customer_id)
    return {"status": "deleted", "customer_id": customer_id}


@router.get("/staff", response_model=list[StaffOut], summary="List staff members")
def list_staff(limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
               offset: int = Query(0, ge=0),
               db: Session = Depends(get_db)):
    return repository.list_staff(db, limit=limit, offset=offset)


@router.post("/staff", response_model=StaffOut, status_code=201, summary="Register a staff member")
def register_staff(body: StaffCreate, db: Session = Depends(get_db)):
    return directory_service.register_staff_member(db, **body.model_dump())


@router.get("/staff/{staff_id}", response_model=StaffOut)
def get_staff(staff_id: int, db: Session = Depends(get_db)):
    return directory_service.get_staff_member(db, staff_id)


@router.patch("/staff/{staff_id}", response_model=StaffOut, summary="Edit a staff member")
def update_staff(staff_id: int, body: StaffUpdate, db: Session = Depends(get_db)):
    return directory_service.update_staff_member(db, staff_id, **body.model_dump(exclude_unset=True))


@router.delete("/staff/{staff_id}", summary="Remove a staff member (soft delete)")
def delete_staff(staff_id: int, db: Session = Depends(get_db)):
    directory_service.delete_staff_member(db, staff_id)
    return {"status": "deleted", "staff_id": staff_id}
