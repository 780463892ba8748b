"""
Maintenance services table.
Same interval semantics as bookings; `description` takes part in duplicate detection.
"""

from sqlalchemy import Column, Integer, DateTime, Numeric, Enum, ForeignKey, Index, Text
from rentfleet.database import Base
from rentfleet.models.base import AuditMixin, SoftDeleteMixin
from rentfleet.models.enums import ServiceStatus


class ServiceRecord(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "service_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff_members.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Enum(ServiceStatus, native_enum=False, length=20),
                    default=ServiceStatus.RESERVED, nullable=False, index=True)
    cost = Column(Numeric(10, 2))

    __table_args__ = (
        Index("ix_service_records_vehicle_interval", "vehicle_id", "start_time", "end_time"),
    )

    def __repr__(self):
        return f"<ServiceRecord {self.id} vehicle={self.vehicle_id} status={self.status}>"
