"""Vehicle schemas"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from app.models.vehicle import VehicleStatus
from app.schemas.common import CamelModel


class VehicleCreate(CamelModel):
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2100)
    license_plate: str = Field(..., min_length=1, max_length=50)
    status: VehicleStatus = VehicleStatus.AVAILABLE
    current_odometer: int = Field(0, ge=0)
    fuel_type: str = "gasoline"
    registration_expiry: Optional[date] = None
    insurance_expiry: Optional[date] = None
    notes: Optional[str] = None


class VehicleUpdate(CamelModel):
    make: Optional[str] = Field(None, min_length=1)
    model: Optional[str] = Field(None, min_length=1)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[VehicleStatus] = None
    current_odometer: Optional[int] = Field(None, ge=0)
    fuel_type: Optional[str] = None
    registration_expiry: Optional[date] = None
    insurance_expiry: Optional[date] = None
    notes: Optional[str] = None


class VehicleStatusUpdate(CamelModel):
    status: str


class VehicleSummary(CamelModel):
    id: int
    make: str
    model: str
    license_plate: str


class VehicleResponse(CamelModel):
    id: int
    make: str
    model: str
    year: int
    license_plate: str
    status: VehicleStatus
    current_odometer: int
    fuel_type: str
    registration_expiry: Optional[date] = None
    insurance_expiry: Optional[date] = None
    documents: List[str] = []
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
