"""Trip schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.models.trip import TripStatus
from app.schemas.common import CamelModel, UserSummary
from app.schemas.member import MemberSummary
from app.schemas.vehicle import VehicleSummary


class TripCreate(CamelModel):
    vehicle: int = Field(..., description="Vehicle ID")
    driver: int = Field(..., description="Driver user ID")
    passengers: List[int] = []
    start_date: datetime
    end_date: Optional[datetime] = None
    purpose: str = Field(..., min_length=1)
    start_odometer: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class TripUpdate(CamelModel):
    vehicle: Optional[int] = None
    driver: Optional[int] = None
    passengers: Optional[List[int]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    purpose: Optional[str] = Field(None, min_length=1)
    start_odometer: Optional[int] = Field(None, ge=0)
    status: Optional[TripStatus] = None
    notes: Optional[str] = None


class TripComplete(CamelModel):
    end_odometer: Optional[int] = Field(None, ge=0)


class TripResponse(CamelModel):
    id: int
    vehicle: Optional[VehicleSummary] = None
    driver: Optional[UserSummary] = None
    passengers: List[MemberSummary] = []
    start_date: datetime
    end_date: Optional[datetime] = None
    purpose: str
    start_odometer: int
    end_odometer: Optional[int] = None
    distance: Optional[int] = None
    status: TripStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
