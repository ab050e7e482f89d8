"""Trip log model"""
from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Text, Table, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin


class TripStatus(str, enum.Enum):
    """Trip lifecycle"""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


trip_passengers = Table(
    "trip_passengers",
    Base.metadata,
    Column("trip_id", Integer, ForeignKey("trips.id", ondelete="CASCADE"), primary_key=True),
    Column("member_id", Integer, ForeignKey("members.id", ondelete="CASCADE"), primary_key=True),
)


class Trip(Base, TimestampMixin):
    """A vehicle trip driven by a user, optionally carrying members"""
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=True)
    purpose = Column(String(500), nullable=False)
    start_odometer = Column(Integer, nullable=False)
    end_odometer = Column(Integer, nullable=True)
    status = Column(
        SQLEnum(TripStatus, values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=TripStatus.SCHEDULED,
        index=True
    )
    notes = Column(Text, nullable=True)

    # Relationships
    vehicle = relationship("Vehicle", back_populates="trips")
    driver = relationship("User")
    passengers = relationship("Member", secondary=trip_passengers, back_populates="trips")

    @property
    def is_active(self) -> bool:
        return self.status not in (TripStatus.COMPLETED, TripStatus.CANCELLED)

    @property
    def distance(self):
        if self.end_odometer is None:
            return None
        return self.end_odometer - self.start_odometer

    def __repr__(self):
        return f"<Trip {self.id} vehicle={self.vehicle_id} ({self.status})>"
