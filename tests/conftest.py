"""Shared fixtures: an in-memory SQLite database per test plus row factories."""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before anything imports rentfleet.config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "rentfleet-test-logs"))
os.environ.setdefault("RECONCILE_ENABLED", "false")

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentfleet.database import create_tables
from rentfleet.models.booking import Booking
from rentfleet.models.customer import Customer
from rentfleet.models.enums import BookingStatus, ServiceStatus, StaffPosition, VehicleStatus
from rentfleet.models.service_record import ServiceRecord
from rentfleet.models.staff_member import StaffMember
from rentfleet.models.vehicle import Vehicle


def at(day, hour=0, minute=0):
    """January 2026 timestamps keep the scenarios readable."""
    return datetime(2026, 1, day, hour, minute)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_vehicle(db):
    counter = {"n": 0}

    def _make(status=VehicleStatus.AVAILABLE, daily_rate=Decimal("50.00")):
        counter["n"] += 1
        vehicle = Vehicle(license_plate=f"AA{counter['n']:04d}BB", brand="Skoda", model="Octavia",
                          year=2022, mileage=15000, daily_rate=daily_rate, status=status)
        db.add(vehicle)
        db.commit()
        return vehicle

    return _make


@pytest.fixture
def make_staff(db):
    def _make(position=StaffPosition.MANAGER):
        staff = StaffMember(first_name="Olena", last_name="Koval", position=position)
        db.add(staff)
        db.commit()
        return staff

    return _make


@pytest.fixture
def customer(db):
    customer = Customer(first_name="Ivan", last_name="Petrenko", email="ivan@example.com",
                        license_number="DL-001")
    db.add(customer)
    db.commit()
    return customer


@pytest.fixture
def manager(make_staff):
    return make_staff(StaffPosition.MANAGER)


@pytest.fixture
def technician(make_staff):
    return make_staff(StaffPosition.TECHNICIAN)


@pytest.fixture
def add_booking(db, customer, manager):
    """Insert a booking row directly, bypassing the creation guards."""
    def _add(vehicle, start, end, status=BookingStatus.RESERVED, deleted=False):
        booking = Booking(vehicle_id=vehicle.id, customer_id=customer.id, staff_id=manager.id,
                          start_time=start, end_time=end, status=status)
        if deleted:
            booking.mark_deleted(at(1))
        db.add(booking)
        db.commit()
        return booking

    return _add


@pytest.fixture
def add_service(db, technician):
    """Insert a service row directly, bypassing the creation guards."""
    def _add(vehicle, start, end, status=ServiceStatus.RESERVED, description="Oil change", deleted=False):
        service = ServiceRecord(vehicle_id=vehicle.id, staff_id=technician.id, start_time=start,
                                end_time=end, description=description, status=status)
        if deleted:
            service.mark_deleted(at(1))
        db.add(service)
        db.commit()
        return service

    return _add
