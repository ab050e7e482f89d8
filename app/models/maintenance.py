"""Vehicle maintenance model"""
from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, DateTime, Text, JSON
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin

INSPECTION = "inspection"


class Maintenance(Base, TimestampMixin):
    """Service performed on a vehicle"""
    __tablename__ = "maintenance"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    maintenance_type = Column(String(100), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)
    odometer = Column(Integer, nullable=True)
    description = Column(Text, nullable=False)
    cost = Column(Numeric(12, 2), nullable=False)
    service_provider = Column(String(255), nullable=False)
    documents = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    vehicle = relationship("Vehicle", back_populates="maintenance_records")

    @property
    def takes_vehicle_out_of_service(self) -> bool:
        return (self.maintenance_type or "").strip().lower() != INSPECTION

    def __repr__(self):
        return f"<Maintenance {self.maintenance_type} vehicle={self.vehicle_id}>"
