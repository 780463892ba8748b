"""
Booking and service lifecycle state machines.

    RESERVED ──(now >= start)──▶ ACTIVE ──(now > end)──▶ COMPLETED
        │                           │
        └────── operator cancel ────┴──▶ CANCELED

COMPLETED and CANCELED are terminal: the sweep never moves a row out of them.
For a non-terminal row exactly one of the three time branches applies for any `now`.
"""

from datetime import datetime
from typing import Optional

from rentfleet.errors import InvalidStatusTransitionError
from rentfleet.models.enums import BookingStatus, ServiceStatus

BOOKING_TERMINAL = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELED})
SERVICE_TERMINAL = frozenset({ServiceStatus.COMPLETED, ServiceStatus.CANCELED})

BOOKING_OPEN = frozenset(BookingStatus) - BOOKING_TERMINAL
SERVICE_OPEN = frozenset(ServiceStatus) - SERVICE_TERMINAL

# Statuses that make an existing interval block a new request
BOOKING_BLOCKING = frozenset({BookingStatus.ACTIVE, BookingStatus.RESERVED})
SERVICE_BLOCKING = frozenset({ServiceStatus.ACTIVE, ServiceStatus.RESERVED})


def _phase(start_time: datetime, end_time: datetime, now: datetime) -> str:
    if now < start_time:
        return "before"
    if now <= end_time:
        return "during"
    return "after"


def next_booking_status(status: Optional[BookingStatus], start_time: datetime,
                        end_time: datetime, now: datetime) -> BookingStatus:
    """Status a booking should hold at `now`. Terminal statuses are returned unchanged."""
    if status in BOOKING_TERMINAL:
        return status
    return {
        "before": BookingStatus.RESERVED,
        "during": BookingStatus.ACTIVE,
        "after": BookingStatus.COMPLETED,
    }[_phase(start_time, end_time, now)]


def next_service_status(status: Optional[ServiceStatus], start_time: datetime,
                        end_time: datetime, now: datetime) -> ServiceStatus:
    """Status a service should hold at `now`. Terminal statuses are returned unchanged."""
    if status in SERVICE_TERMINAL:
        return status
    return {
        "before": ServiceStatus.RESERVED,
        "during": ServiceStatus.ACTIVE,
        "after": ServiceStatus.COMPLETED,
    }[_phase(start_time, end_time, now)]


def ensure_cancelable(status, open_statuses, label: str, row_id: int):
    """Operator cancellation is only allowed from RESERVED or ACTIVE."""
    if status not in open_statuses:
        raise InvalidStatusTransitionError(
            f"{label} {row_id} is {status.value} and can no longer be canceled"
        )


def ensure_editable(status, open_statuses, label: str, row_id: int):
    if status not in open_statuses:
        raise InvalidStatusTransitionError(
            f"{label} {row_id} is {status.value}; terminal rows cannot be edited"
        )
