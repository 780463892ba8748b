from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rentfleet.models.enums import VehicleStatus


class VehicleCreate(BaseModel):
    license_plate: str = Field(min_length=1, max_length=50)
    brand: str = Field(min_length=1, max_length=255)
    model: str = Field(min_length=1, max_length=255)
    year: Optional[int] = Field(default=None, gt=0)
    mileage: Optional[int] = Field(default=None, ge=0)
    daily_rate: Optional[Decimal] = Field(default=None, ge=0)


class VehicleUpdate(BaseModel):
    license_plate: Optional[str] = Field(default=None, min_length=1, max_length=50)
    brand: Optional[str] = Field(default=None, min_length=1, max_length=255)
    model: Optional[str] = Field(default=None, min_length=1, max_length=255)
    year: Optional[int] = Field(default=None, gt=0)
    mileage: Optional[int] = Field(default=None, ge=0)
    daily_rate: Optional[Decimal] = Field(default=None, ge=0)


class VehicleOut(BaseModel):
    id: int
    license_plate: str
    brand: str
    model: str
    year: Optional[int]
    mileage: Optional[int]
    daily_rate: Optional[Decimal]
    status: VehicleStatus
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
