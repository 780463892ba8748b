"""
Rental bookings table.
[start_time, end_time] is a closed interval in naive UTC. The reconciliation sweep
may only change `status`; everything else is operator-mutated.
"""

from sqlalchemy import Column, Integer, DateTime, Numeric, Enum, ForeignKey, Index
from rentfleet.database import Base
from rentfleet.models.base import AuditMixin, SoftDeleteMixin
from rentfleet.models.enums import BookingStatus


class Booking(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff_members.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(Enum(BookingStatus, native_enum=False, length=20),
                    default=BookingStatus.RESERVED, nullable=False, index=True)
    cost = Column(Numeric(10, 2))

    __table_args__ = (
        Index("ix_bookings_vehicle_interval", "vehicle_id", "start_time", "end_time"),
    )

    def __repr__(self):
        return f"<Booking {self.id} vehicle={self.vehicle_id} status={self.status}>"
