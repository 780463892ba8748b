"""
Reconciliation sweep: recomputes booking, service and vehicle statuses from `now`.

    1. lock every live vehicle row (SELECT ... FOR UPDATE, id order)
    2. load live bookings/services in a non-terminal status (filtered in SQL)
    3. apply the lifecycle transition to each, flush the changed rows as one batch
    4. reproject every locked vehicle that is not OUT_OF_ORDER from the updated rows

Booking and service writers lock their vehicle before touching anything, so once step 1
returns no writer can commit until the sweep does. On PostgreSQL the runner also takes a
transaction-scoped advisory lock, so sweeps in different worker processes never overlap.

`reconcile()` never commits; `ReconciliationRunner.run_once()` wraps it in one transaction
so readers see either the pre-sweep or the post-sweep state. A failed sweep is rolled back
entirely and simply retried on the next run, since every run recomputes from scratch.
Running twice with the same `now` and no writes in between changes nothing the second time.
"""

import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentfleet.errors import SweepInProgressError
from rentfleet.models.enums import VehicleStatus
from rentfleet.services import repository
from rentfleet.services.lifecycle import next_booking_status, next_service_status
from rentfleet.services.status_projection import derive_vehicle_status
from rentfleet.utils.clock import utcnow
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)

# pg_try_advisory_xact_lock key shared by every worker process ("RENT")
SWEEP_ADVISORY_LOCK_KEY = 0x52454E54


@dataclass
class ReconciliationReport:
    now: datetime
    bookings_updated: int = 0
    services_updated: int = 0
    vehicles_updated: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.bookings_updated or self.services_updated or self.vehicles_updated)

    def to_dict(self) -> dict:
        return asdict(self)


def reconcile(db: Session, now: datetime) -> ReconciliationReport:
    report = ReconciliationReport(now=now)
    vehicles = repository.live_vehicles(db, lock=True)

    for booking in repository.open_bookings(db):
        status = next_booking_status(booking.status, booking.start_time, booking.end_time, now)
        if status != booking.status:
            logger.debug(f"Booking {booking.id}: {booking.status.value} → {status.value}")
            booking.status = status
            report.bookings_updated += 1

    for service in repository.open_services(db):
        status = next_service_status(service.status, service.start_time, service.end_time, now)
        if status != service.status:
            logger.debug(f"Service {service.id}: {service.status.value} → {status.value}")
            service.status = status
            report.services_updated += 1

    db.flush()

    rented = repository.vehicle_ids_with_occupying_booking(db, now)
    serviced = repository.vehicle_ids_with_occupying_service(db, now)
    for vehicle_id in sorted(rented & serviced):
        logger.warning(f"Vehicle {vehicle_id} has both an occupying booking and service "
                       f"at {now.isoformat()} — projecting RENTED")

    for vehicle in vehicles:
        if vehicle.status == VehicleStatus.OUT_OF_ORDER:
            continue
        status = derive_vehicle_status(vehicle.status, vehicle.id in rented, vehicle.id in serviced)
        if status != vehicle.status:
            logger.debug(f"Vehicle {vehicle.id}: {vehicle.status.value} → {status.value}")
            vehicle.status = status
            report.vehicles_updated += 1

    db.flush()
    return report


def acquire_sweep_lock(db: Session) -> bool:
    """
    Take the cross-process sweep lock for the current transaction. PostgreSQL only; other
    backends run a single worker and rely on the runner's thread lock.
    """
    if db.get_bind().dialect.name != "postgresql":
        return True
    return bool(db.execute(text("SELECT pg_try_advisory_xact_lock(:key)"),
                           {"key": SWEEP_ADVISORY_LOCK_KEY}).scalar())


class ReconciliationRunner:
    """
    Single-flight owner of the sweep. A thread lock keeps one sweep per process and, on
    PostgreSQL, an advisory lock keeps one sweep per database. A trigger that arrives
    mid-sweep is skipped (or rejected with raise_if_busy=True).
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None,
                 clock: Callable[[], datetime] = utcnow):
        self._session_factory = session_factory
        self._clock = clock
        self._lock = threading.Lock()
        self.runs = 0
        self.failures = 0
        self.last_report: Optional[ReconciliationReport] = None
        self.last_success_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def _new_session(self) -> Session:
        if self._session_factory is None:
            from rentfleet.database import SessionLocal
            return SessionLocal()
        return self._session_factory()

    def run_once(self, now: Optional[datetime] = None,
                 raise_if_busy: bool = False) -> Optional[ReconciliationReport]:
        """Run one sweep. Returns the report, or None if skipped or failed."""
        if not self._lock.acquire(blocking=False):
            if raise_if_busy:
                raise SweepInProgressError("A reconciliation sweep is already running")
            logger.info("Reconciliation sweep already in flight — skipped")
            return None
        try:
            return self._sweep(now or self._clock(), raise_if_busy)
        finally:
            self._lock.release()

    def _sweep(self, now: datetime, raise_if_busy: bool = False) -> Optional[ReconciliationReport]:
        db = self._new_session()
        try:
            if not acquire_sweep_lock(db):
                if raise_if_busy:
                    raise SweepInProgressError("A reconciliation sweep is already running in another worker")
                logger.info("Reconciliation sweep running in another worker — skipped")
                return None
            self.runs += 1
            report = reconcile(db, now)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            self.failures += 1
            self.last_error = str(e)
            logger.error(f"Reconciliation sweep failed, retrying on next run: {e}", exc_info=True)
            return None
        finally:
            db.close()

        self.last_report = report
        self.last_success_at = now
        self.last_error = None
        if report.changed:
            logger.info(f"Reconciled at {now.isoformat()}: bookings={report.bookings_updated} "
                        f"services={report.services_updated} vehicles={report.vehicles_updated}")
        else:
            logger.debug(f"Reconciled at {now.isoformat()}: no changes")
        return report

    def status(self) -> dict:
        return {
            "in_flight": self.in_flight,
            "runs": self.runs,
            "failures": self.failures,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "last_error": self.last_error,
            "last_report": self.last_report.to_dict() if self.last_report else None,
        }


reconciliation_runner = ReconciliationRunner()
