"""Unit tests for maintenance service registration and edits."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from unittest.mock import patch
from rentfleet.errors import (
    AlreadyExistsError,
    InvalidStatusTransitionError,
    NotAvailableError,
    NotFoundError,
    PositionNotAllowedError,
)
from rentfleet.models.enums import BookingStatus, IntervalKind, ServiceStatus, StaffPosition, VehicleStatus
from rentfleet.models.service_record import ServiceRecord
from rentfleet.models.vehicle import Vehicle
from rentfleet.services import repository, service_record_service


def at(day, hour=0, minute=0):
    return datetime(2026, 1, day, hour, minute)


NOW = at(1)


class TestCreateService:
    def test_future_service_is_reserved(self, db, make_vehicle, technician):
        vehicle = make_vehicle()
        service = service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                                        "Brake pads", now=NOW)
        assert service.status == ServiceStatus.RESERVED
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.AVAILABLE

    def test_service_covering_now_puts_vehicle_in_service(self, db, make_vehicle, technician):
        vehicle = make_vehicle()
        service = service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                                        "Brake pads", now=at(10, 12))
        assert service.status == ServiceStatus.ACTIVE
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.IN_SERVICE

    def test_duplicate_service_already_exists(self, db, make_vehicle, technician):
        vehicle = make_vehicle()
        service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11), "Oil change", now=NOW)
        with pytest.raises(AlreadyExistsError):
            service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                                  "Oil change", now=NOW)
        assert db.query(ServiceRecord).count() == 1

    def test_same_window_other_description_still_overlaps(self, db, make_vehicle, technician):
        vehicle = make_vehicle()
        service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11), "Oil change", now=NOW)
        with pytest.raises(NotAvailableError) as exc:
            service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                                  "Tyre swap", now=NOW)
        assert exc.value.conflict.kind == IntervalKind.SERVICE

    def test_sales_representative_rejected(self, db, make_vehicle, make_staff):
        vehicle = make_vehicle()
        sales = make_staff(StaffPosition.SALES_REPRESENTATIVE)
        with pytest.raises(PositionNotAllowedError):
            service_record_service.create_service(db, vehicle.id, sales.id, at(10), at(11), "Oil change", now=NOW)

    def test_manager_may_register_service(self, db, make_vehicle, manager):
        vehicle = make_vehicle()
        service = service_record_service.create_service(db, vehicle.id, manager.id, at(10), at(11),
                                                        "Inspection", now=NOW)
        assert service.staff_id == manager.id

    def test_blocked_while_vehicle_is_rented(self, db, make_vehicle, add_booking, technician):
        vehicle = make_vehicle()
        add_booking(vehicle, at(1), at(3), status=BookingStatus.ACTIVE)
        with pytest.raises(NotAvailableError):
            service_record_service.create_service(db, vehicle.id, technician.id, at(20), at(21),
                                                  "Oil change", now=at(2))

    def test_blocked_by_future_booking_in_window(self, db, make_vehicle, add_booking, technician):
        vehicle = make_vehicle()
        booking = add_booking(vehicle, at(10), at(12))
        with pytest.raises(NotAvailableError) as exc:
            service_record_service.create_service(db, vehicle.id, technician.id, at(12), at(13),
                                                  "Oil change", now=NOW)
        assert exc.value.conflict.kind == IntervalKind.BOOKING
        assert exc.value.conflict.source_id == booking.id

    def test_out_of_order_vehicle_can_be_serviced(self, db, make_vehicle, technician):
        vehicle = make_vehicle(status=VehicleStatus.OUT_OF_ORDER)
        service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                              "Engine rebuild", now=at(10, 5))
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.OUT_OF_ORDER

    def test_unknown_vehicle_and_staff(self, db, make_vehicle, technician):
        with pytest.raises(NotFoundError):
            service_record_service.create_service(db, 404, technician.id, at(10), at(11), "x", now=NOW)
        vehicle = make_vehicle()
        with pytest.raises(NotFoundError):
            service_record_service.create_service(db, vehicle.id, 404, at(10), at(11), "x", now=NOW)


class TestEditService:
    def test_reschedule_and_describe(self, db, make_vehicle, technician):
        vehicle = make_vehicle()
        service = service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                                        "Oil change", now=NOW)
        updated = service_record_service.update_service(db, service.id, start_time=at(10, 12), end_time=at(12),
                                                        description="Oil and filter", now=NOW)
        assert updated.start_time == at(10, 12)
        assert updated.description == "Oil and filter"

    def test_reschedule_into_booking_rejected(self, db, make_vehicle, add_booking, technician):
        vehicle = make_vehicle()
        add_booking(vehicle, at(15), at(16))
        service = service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                                        "Oil change", now=NOW)
        with pytest.raises(NotAvailableError):
            service_record_service.update_service(db, service.id, end_time=at(15), now=NOW)

    def test_cancel_active_service_frees_vehicle(self, db, make_vehicle, technician):
        vehicle = make_vehicle()
        service = service_record_service.create_service(db, vehicle.id, technician.id, at(10), at(11),
                                                        "Oil change", now=at(10, 5))
        service_record_service.cancel_service(db, service.id, now=at(10, 6))
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.AVAILABLE

    def test_completed_service_cannot_be_canceled(self, db, make_vehicle, add_service):
        vehicle = make_vehicle()
        service = add_service(vehicle, at(2), at(3), status=ServiceStatus.COMPLETED)
        with pytest.raises(InvalidStatusTransitionError):
            service_record_service.cancel_service(db, service.id, now=at(5))

    def test_deleted_service_not_found(self, db, make_vehicle, add_service):
        vehicle = make_vehicle()
        service = add_service(vehicle, at(10), at(11))
        service_record_service.delete_service(db, service.id, now=NOW)
        with pytest.raises(NotFoundError):
            service_record_service.get_service(db, service.id)


class TestConcurrentWriters:
    def test_reschedule_sees_cancel_committed_while_waiting_for_lock(self, db, session_factory, make_vehicle,
                                                                     add_service):
        vehicle = make_vehicle()
        service = add_service(vehicle, at(10), at(12))
        other = session_factory()
        service_id = service.id
        original = repository.get_vehicle
        fired = {"done": False}

        def get_vehicle_after_concurrent_cancel(session, vehicle_id, lock=False):
            if lock and not fired["done"]:
                fired["done"] = True
                service_record_service.cancel_service(other, service_id, now=at(11))
            return original(session, vehicle_id, lock=lock)

        try:
            with patch("rentfleet.services.repository.get_vehicle", side_effect=get_vehicle_after_concurrent_cancel):
                with pytest.raises(InvalidStatusTransitionError):
                    service_record_service.update_service(db, service.id, end_time=at(13), now=at(11))
        finally:
            other.close()

        assert fired["done"]
        db.expire_all()
        assert db.get(ServiceRecord, service.id).status == ServiceStatus.CANCELED
        assert db.get(Vehicle, vehicle.id).status == VehicleStatus.AVAILABLE
