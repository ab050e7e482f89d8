"""Maintenance schemas"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.vehicle import VehicleSummary


class MaintenanceCreate(CamelModel):
    vehicle: int = Field(..., description="Vehicle ID")
    maintenance_type: str = Field(..., min_length=1)
    date: datetime
    odometer: Optional[int] = Field(None, ge=0)
    description: str = Field(..., min_length=1)
    cost: Decimal = Field(..., ge=0)
    service_provider: str = Field(..., min_length=1)
    notes: Optional[str] = None


class MaintenanceUpdate(CamelModel):
    maintenance_type: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime] = None
    odometer: Optional[int] = Field(None, ge=0)
    description: Optional[str] = Field(None, min_length=1)
    cost: Optional[Decimal] = Field(None, ge=0)
    service_provider: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None


class MaintenanceResponse(CamelModel):
    id: int
    vehicle_id: int
    vehicle: Optional[VehicleSummary] = None
    maintenance_type: str
    date: datetime
    odometer: Optional[int] = None
    description: str
    cost: float
    service_provider: str
    documents: List[str] = []
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
