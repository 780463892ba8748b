"""
Status and position enumerations shared by models, services and schemas.
Stored by name in VARCHAR columns (non-native enums) so PostgreSQL and SQLite behave the same.
"""

import enum


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"
    IN_SERVICE = "IN_SERVICE"
    RESERVED = "RESERVED"
    OUT_OF_ORDER = "OUT_OF_ORDER"       # operator override, never cleared by the sweep


class BookingStatus(str, enum.Enum):
    RESERVED = "RESERVED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class ServiceStatus(str, enum.Enum):
    RESERVED = "RESERVED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class StaffPosition(str, enum.Enum):
    MANAGER = "MANAGER"
    TECHNICIAN = "TECHNICIAN"
    SALES_REPRESENTATIVE = "SALES_REPRESENTATIVE"
    ADMINISTRATOR = "ADMINISTRATOR"


class IntervalKind(str, enum.Enum):
    BOOKING = "booking"
    SERVICE = "service"
