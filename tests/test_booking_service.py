"""Unit tests for the booking workflows (create / update / cancel / delete)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch
from rentfleet.errors import (
    AlreadyExistsError,
    InvalidIntervalError,
    InvalidStatusTransitionError,
    NotAvailableError,
    NotFoundError,
    PositionNotAllowedError,
)
from rentfleet.models.booking import Booking
from rentfleet.models.enums import BookingStatus, StaffPosition, VehicleStatus
from rentfleet.models.vehicle import Vehicle
from rentfleet.services import booking_service, repository
from rentfleet.services.booking_service import price_booking


def at(day, hour=0, minute=0):
    return datetime(2026, 1, day, hour, minute)


NOW = at(1)


class TestCreateBooking:
    def test_creates_reserved_booking_for_future_window(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking = booking_service.create_booking(db, vehicle.id, customer.id, manager.id,
                                                 at(10, 10), at(12, 10), now=NOW)
        assert booking.id is not None
        assert booking.status == BookingStatus.RESERVED
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.AVAILABLE

    def test_booking_covering_now_is_active_and_rents_vehicle(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking = booking_service.create_booking(db, vehicle.id, customer.id, manager.id,
                                                 at(10), at(12), now=at(11))
        assert booking.status == BookingStatus.ACTIVE
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.RENTED

    def test_overlapping_request_not_available(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        first = booking_service.create_booking(db, vehicle.id, customer.id, manager.id,
                                               at(10, 10), at(12, 10), now=NOW)

        with pytest.raises(NotAvailableError) as exc:
            booking_service.create_booking(db, vehicle.id, customer.id, manager.id,
                                           at(11), at(11, 12), now=NOW)

        assert exc.value.conflict.source_id == first.id
        assert db.query(Booking).count() == 1

    def test_back_to_back_bookings_conflict(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)
        with pytest.raises(NotAvailableError):
            booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(12), at(14), now=NOW)

    def test_technician_rejected_regardless_of_availability(self, db, make_vehicle, customer, technician):
        vehicle = make_vehicle()
        with pytest.raises(PositionNotAllowedError):
            booking_service.create_booking(db, vehicle.id, customer.id, technician.id,
                                           at(10), at(12), now=NOW)
        assert db.query(Booking).count() == 0

    @pytest.mark.parametrize("position", [StaffPosition.SALES_REPRESENTATIVE,
                                          StaffPosition.ADMINISTRATOR, StaffPosition.MANAGER])
    def test_other_positions_may_book(self, db, make_vehicle, make_staff, customer, position):
        vehicle = make_vehicle()
        staff = make_staff(position)
        booking = booking_service.create_booking(db, vehicle.id, customer.id, staff.id,
                                                 at(10), at(12), now=NOW)
        assert booking.staff_id == staff.id

    def test_duplicate_interval_already_exists(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)
        with pytest.raises(AlreadyExistsError):
            booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)

    def test_canceled_duplicate_can_be_rebooked(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        first = booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)
        booking_service.cancel_booking(db, first.id, now=NOW)
        second = booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)
        assert second.id != first.id

    def test_unknown_vehicle(self, db, customer, manager):
        with pytest.raises(NotFoundError):
            booking_service.create_booking(db, 404, customer.id, manager.id, at(10), at(12), now=NOW)

    def test_deleted_vehicle_is_not_found(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        vehicle.mark_deleted(NOW)
        db.commit()
        with pytest.raises(NotFoundError):
            booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)

    def test_unknown_staff(self, db, make_vehicle, customer):
        vehicle = make_vehicle()
        with pytest.raises(NotFoundError):
            booking_service.create_booking(db, vehicle.id, customer.id, 404, at(10), at(12), now=NOW)

    def test_unknown_customer(self, db, make_vehicle, manager):
        vehicle = make_vehicle()
        with pytest.raises(NotFoundError):
            booking_service.create_booking(db, vehicle.id, 404, manager.id, at(10), at(12), now=NOW)

    def test_start_after_end(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        with pytest.raises(InvalidIntervalError):
            booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(12), at(10), now=NOW)

    def test_open_service_blocks_booking(self, db, make_vehicle, add_service, customer, manager):
        vehicle = make_vehicle()
        add_service(vehicle, at(11), at(13))
        with pytest.raises(NotAvailableError):
            booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)

    def test_cost_priced_from_daily_rate(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle(daily_rate=Decimal("40.00"))
        booking = booking_service.create_booking(db, vehicle.id, customer.id, manager.id,
                                                 at(10, 10), at(12, 12), now=NOW)
        assert booking.cost == Decimal("120.00")   # 2 days 2 hours → 3 started days

    def test_explicit_cost_kept(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking = booking_service.create_booking(db, vehicle.id, customer.id, manager.id,
                                                 at(10), at(12), cost=Decimal("99.90"), now=NOW)
        assert booking.cost == Decimal("99.90")


class TestPricing:
    def test_minimum_one_day(self):
        assert price_booking(Decimal("30"), at(10), at(10, 1)) == Decimal("30.00")

    def test_no_rate(self):
        assert price_booking(None, at(10), at(12)) is None


class TestUpdateCancelDelete:
    def test_move_booking_into_conflict_rejected(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)
        second = booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(15), at(16), now=NOW)

        with pytest.raises(NotAvailableError):
            booking_service.update_booking(db, second.id, start_time=at(11), now=NOW)

        db.refresh(second)
        assert second.start_time == at(15)

    def test_extend_booking_does_not_conflict_with_itself(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking = booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)
        updated = booking_service.update_booking(db, booking.id, end_time=at(14), cost=Decimal("10"), now=NOW)
        assert updated.end_time == at(14)
        assert updated.cost == Decimal("10")

    def test_cancel_active_booking_frees_vehicle(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking = booking_service.create_booking(db, vehicle.id, customer.id, manager.id,
                                                 at(10), at(12), now=at(11))
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.RENTED

        canceled = booking_service.cancel_booking(db, booking.id, now=at(11))

        assert canceled.status == BookingStatus.CANCELED
        db.refresh(vehicle)
        assert vehicle.status == VehicleStatus.AVAILABLE

    def test_cannot_cancel_completed(self, db, make_vehicle, add_booking):
        vehicle = make_vehicle()
        booking = add_booking(vehicle, at(2), at(3), status=BookingStatus.COMPLETED)
        with pytest.raises(InvalidStatusTransitionError):
            booking_service.cancel_booking(db, booking.id, now=at(5))

    def test_cannot_edit_canceled(self, db, make_vehicle, add_booking):
        vehicle = make_vehicle()
        booking = add_booking(vehicle, at(10), at(12), status=BookingStatus.CANCELED)
        with pytest.raises(InvalidStatusTransitionError):
            booking_service.update_booking(db, booking.id, end_time=at(13), now=NOW)

    def test_soft_delete_hides_and_unblocks(self, db, make_vehicle, customer, manager):
        vehicle = make_vehicle()
        booking = booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)

        booking_service.delete_booking(db, booking.id, now=NOW)

        assert db.get(Booking, booking.id).is_deleted
        with pytest.raises(NotFoundError):
            booking_service.get_booking(db, booking.id)
        again = booking_service.create_booking(db, vehicle.id, customer.id, manager.id, at(10), at(12), now=NOW)
        assert again.id != booking.id


class TestConcurrentWriters:
    def test_cancel_committed_while_waiting_for_lock_is_honoured(self, db, session_factory, make_vehicle,
                                                                 add_booking):
        """An edit that read RESERVED must not revive a booking another session canceled meanwhile."""
        vehicle = make_vehicle()
        booking = add_booking(vehicle, at(10), at(12))
        other = session_factory()
        booking_id = booking.id
        original = repository.get_vehicle
        fired = {"done": False}

        def get_vehicle_after_concurrent_cancel(session, vehicle_id, lock=False):
            if lock and not fired["done"]:
                fired["done"] = True
                booking_service.cancel_booking(other, booking_id, now=at(11))
            return original(session, vehicle_id, lock=lock)

        try:
            with patch("rentfleet.services.repository.get_vehicle", side_effect=get_vehicle_after_concurrent_cancel):
                with pytest.raises(InvalidStatusTransitionError):
                    booking_service.update_booking(db, booking.id, end_time=at(13), now=at(11))
        finally:
            other.close()

        assert fired["done"]
        db.expire_all()
        stored = db.get(Booking, booking.id)
        assert stored.status == BookingStatus.CANCELED
        assert stored.end_time == at(12)
        assert db.get(Vehicle, vehicle.id).status == VehicleStatus.AVAILABLE

    def test_delete_of_concurrently_deleted_booking_is_not_found(self, db, session_factory, make_vehicle,
                                                                 add_booking):
        vehicle = make_vehicle()
        booking = add_booking(vehicle, at(10), at(12))
        other = session_factory()
        booking_id = booking.id
        original = repository.get_vehicle
        fired = {"done": False}

        def get_vehicle_after_concurrent_delete(session, vehicle_id, lock=False):
            if lock and not fired["done"]:
                fired["done"] = True
                booking_service.delete_booking(other, booking_id, now=at(5))
            return original(session, vehicle_id, lock=lock)

        try:
            with patch("rentfleet.services.repository.get_vehicle", side_effect=get_vehicle_after_concurrent_delete):
                with pytest.raises(NotFoundError):
                    booking_service.cancel_booking(db, booking.id, now=at(5))
        finally:
            other.close()
