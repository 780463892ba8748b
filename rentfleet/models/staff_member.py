"""
Staff members. `position` gates lifecycle-affecting actions:
technicians may not create bookings, sales representatives may not register services.
"""

from sqlalchemy import Column, Integer, String, Enum
from rentfleet.database import Base
from rentfleet.models.base import AuditMixin, SoftDeleteMixin
from rentfleet.models.enums import StaffPosition


class StaffMember(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "staff_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True)
    position = Column(Enum(StaffPosition, native_enum=False, length=30), nullable=False)

    def __repr__(self):
        return f"<StaffMember {self.id} position={self.position}>"
