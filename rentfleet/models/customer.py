"""Rental customers. Bookings reference them by id only."""

from sqlalchemy import Column, Integer, String
from rentfleet.database import Base
from rentfleet.models.base import AuditMixin, SoftDeleteMixin


class Customer(AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True)
    phone = Column(String(50))
    license_number = Column(String(100))

    def __repr__(self):
        return f"<Customer {self.id} {self.first_name} {self.last_name}>"
