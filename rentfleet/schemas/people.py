from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from rentfleet.models.enums import StaffPosition


class CustomerCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None


class CustomerOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str]
    phone: Optional[str]
    license_number: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class StaffCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    position: StaffPosition
    email: Optional[str] = None


class StaffUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    position: Optional[StaffPosition] = None


class StaffOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str]
    position: StaffPosition
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
