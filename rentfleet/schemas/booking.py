from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rentfleet.models.enums import BookingStatus
from rentfleet.utils.clock import to_utc_naive


class BookingCreate(BaseModel):
    vehicle_id: int
    customer_id: int
    staff_id: int
    start_time: datetime
    end_time: datetime
    cost: Optional[Decimal] = Field(default=None, ge=0)   # priced from the vehicle's daily rate when omitted

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def normalise_utc(cls, v: datetime) -> datetime:
        return to_utc_naive(v)


class BookingUpdate(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    cost: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def normalise_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(v) if v is not None else v


class BookingOut(BaseModel):
    id: int
    vehicle_id: int
    customer_id: int
    staff_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    cost: Optional[Decimal]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
