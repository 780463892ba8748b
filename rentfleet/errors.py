"""
Domain errors raised by the booking/service workflows.
Every error is an expected, caller-recoverable outcome; main.py maps them to HTTP responses
through ERROR_STATUS_CODES so routers stay thin.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from rentfleet.services.intervals import Interval


class FleetError(Exception):
    """Base class for all domain errors."""

    error_code = "fleet_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error_code, "detail": self.message}


class NotFoundError(FleetError):
    error_code = "not_found"


class AlreadyExistsError(FleetError):
    error_code = "already_exists"


class PositionNotAllowedError(FleetError):
    error_code = "position_not_allowed"


class NotAvailableError(FleetError):
    """Overlap detected. `conflict` is the existing interval that caused the rejection."""

    error_code = "not_available"

    def __init__(self, message: str, conflict: Optional[Interval] = None):
        super().__init__(message)
        self.conflict = conflict

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.conflict is not None:
            body["conflict"] = self.conflict.to_dict()
        return body


class InvalidIntervalError(FleetError):
    error_code = "invalid_interval"


class InvalidStatusTransitionError(FleetError):
    error_code = "invalid_status_transition"


class SweepInProgressError(FleetError):
    error_code = "sweep_in_progress"


# (exception class, HTTP status). First match wins, so subclasses go first.
ERROR_STATUS_CODES: list[tuple[type, int]] = [
    (NotFoundError, 404),
    (PositionNotAllowedError, 403),
    (AlreadyExistsError, 409),
    (NotAvailableError, 409),
    (InvalidStatusTransitionError, 409),
    (SweepInProgressError, 409),
    (InvalidIntervalError, 422),
]


def status_code_for(exc: FleetError) -> int:
    for exc_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 400
