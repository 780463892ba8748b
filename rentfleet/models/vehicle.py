"""
Fleet vehicles table.
`status` is a cached projection of the vehicle's bookings and services; it is written
only by the status projection (sweep, create/update/cancel paths) or the out-of-order override.
"""

from sqlalchemy import Column, Integer, String, Numeric, Enum
from rentfleet.database import Base
from rentfleet.models.base import AuditMixin, SoftDeleteMixin
from rentfleet.models.enums import VehicleStatus


class Vehicle(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    brand = Column(String(255), nullable=False)
    model = Column(String(255), nullable=False)
    year = Column(Integer)
    mileage = Column(Integer)
    daily_rate = Column(Numeric(10, 2))          # used to price bookings created without a cost
    status = Column(Enum(VehicleStatus, native_enum=False, length=20),
                    default=VehicleStatus.AVAILABLE, nullable=False, index=True)

    def __repr__(self):
        return f"<Vehicle {self.id} plate={self.license_plate} status={self.status}>"
