"""Identity lookup, registration and upkeep for customers and staff members."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from rentfleet.errors import AlreadyExistsError, NotAvailableError, NotFoundError
from rentfleet.models.customer import Customer
from rentfleet.models.enums import StaffPosition
from rentfleet.models.staff_member import StaffMember
from rentfleet.services import repository
from rentfleet.services.intervals import Interval
from rentfleet.utils.clock import utcnow
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)


def _email_taken(db: Session, model, email: Optional[str], exclude_id: Optional[int] = None) -> bool:
    if not email:
        return False
    q = db.query(model.id).filter(model.email == email)
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    return q.first() is not None


def _apply(row, **fields):
    for field, value in fields.items():
        if value is not None:
            setattr(row, field, value)


# ── Customers ────────────────────────────────────────────────────────────────

def register_customer(db: Session, first_name: str, last_name: str, email: Optional[str] = None,
                      phone: Optional[str] = None, license_number: Optional[str] = None) -> Customer:
    if _email_taken(db, Customer, email):
        raise AlreadyExistsError(f"Customer with email {email} already exists")
    customer = Customer(first_name=first_name, last_name=last_name, email=email,
                        phone=phone, license_number=license_number)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info(f"Customer {customer.id} registered")
    return customer


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = repository.get_customer(db, customer_id)
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def update_customer(db: Session, customer_id: int, first_name: Optional[str] = None,
                    last_name: Optional[str] = None, email: Optional[str] = None,
                    phone: Optional[str] = None, license_number: Optional[str] = None) -> Customer:
    """None leaves a field unchanged."""
    customer = get_customer(db, customer_id)
    if _email_taken(db, Customer, email, exclude_id=customer_id):
        raise AlreadyExistsError(f"Customer with email {email} already exists")
    _apply(customer, first_name=first_name, last_name=last_name, email=email,
           phone=phone, license_number=license_number)
    db.commit()
    db.refresh(customer)
    logger.info(f"Customer {customer_id} updated")
    return customer


def delete_customer(db: Session, customer_id: int, now: Optional[datetime] = None):
    """Soft-delete a customer. Refused while they hold a reserved or active booking."""
    now = now or utcnow()
    customer = get_customer(db, customer_id)
    bookings = repository.open_bookings(db, customer_id=customer_id)
    if bookings:
        raise NotAvailableError(f"Customer {customer_id} still has open bookings",
                                conflict=Interval.of_booking(bookings[0]))
    customer.mark_deleted(now)
    db.commit()
    logger.info(f"Customer {customer_id} deleted")


# ── Staff ────────────────────────────────────────────────────────────────────

def register_staff_member(db: Session, first_name: str, last_name: str, position: StaffPosition,
                          email: Optional[str] = None) -> StaffMember:
    if _email_taken(db, StaffMember, email):
        raise AlreadyExistsError(f"Staff member with email {email} already exists")
    staff = StaffMember(first_name=first_name, last_name=last_name, email=email, position=position)
    db.add(staff)
    db.commit()
    db.refresh(staff)
    logger.info(f"Staff member {staff.id} registered as {position.value}")
    return staff


def get_staff_member(db: Session, staff_id: int) -> StaffMember:
    staff = repository.get_staff_member(db, staff_id)
    if not staff:
        raise NotFoundError(f"Staff member {staff_id} not found")
    return staff


def update_staff_member(db: Session, staff_id: int, first_name: Optional[str] = None,
                        last_name: Optional[str] = None, email: Optional[str] = None,
                        position: Optional[StaffPosition] = None) -> StaffMember:
    """
    A position change only affects requests made after it; bookings and services the
    member already created keep their staff_id and stay valid.
    """
    staff = get_staff_member(db, staff_id)
    if _email_taken(db, StaffMember, email, exclude_id=staff_id):
        raise AlreadyExistsError(f"Staff member with email {email} already exists")
    old_position = staff.position
    _apply(staff, first_name=first_name, last_name=last_name, email=email, position=position)
    db.commit()
    db.refresh(staff)
    if staff.position != old_position:
        logger.info(f"Staff member {staff_id} moved from {old_position.value} to {staff.position.value}")
    else:
        logger.info(f"Staff member {staff_id} updated")
    return staff


def delete_staff_member(db: Session, staff_id: int, now: Optional[datetime] = None):
    """Soft-delete; existing rows keep pointing at the member, new requests naming them get 404."""
    now = now or utcnow()
    staff = get_staff_member(db, staff_id)
    staff.mark_deleted(now)
    db.commit()
    logger.info(f"Staff member {staff_id} deleted")
