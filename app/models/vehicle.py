"""Vehicle fleet model"""
from sqlalchemy import Column, String, Integer, Date, Text, Enum as SQLEnum, JSON
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin


class VehicleStatus(str, enum.Enum):
    """Vehicle availability"""
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    OUT_OF_SERVICE = "out_of_service"


class Vehicle(Base, TimestampMixin):
    """Association vehicle"""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    status = Column(
        SQLEnum(VehicleStatus, values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=VehicleStatus.AVAILABLE,
        index=True
    )
    current_odometer = Column(Integer, nullable=False, default=0)
    fuel_type = Column(String(50), nullable=False, default="gasoline")
    registration_expiry = Column(Date, nullable=True)
    insurance_expiry = Column(Date, nullable=True)
    documents = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    notes = Column(Text, nullable=True)

    # Relationships
    trips = relationship("Trip", back_populates="vehicle", cascade="all, delete-orphan")
    maintenance_records = relationship("Maintenance", back_populates="vehicle", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Vehicle {self.license_plate} ({self.status})>"
