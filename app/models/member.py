"""Member registry model"""
from datetime import datetime

from sqlalchemy import Column, String, Integer, Date, DateTime, Text, Enum as SQLEnum, JSON
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin


class MembershipStatus(str, enum.Enum):
    """Membership status"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    DECEASED = "deceased"
    WITHDRAWN = "withdrawn"


class Member(Base, TimestampMixin):
    """Registered association member"""
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Name
    first_name = Column(String(100), nullable=False, index=True)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False, index=True)

    date_of_birth = Column(Date, nullable=False)
    national_id = Column(String(50), unique=True, nullable=False, index=True)

    # Contact
    phone = Column(String(30), nullable=False)
    email = Column(String(255), nullable=True)

    # Addresses: {street, city, state, postalCode, country}
    primary_address = Column(JSON, nullable=False)
    alternate_address = Column(JSON, nullable=True)

    tribe_affiliation = Column(String(255), nullable=True)
    membership_status = Column(
        SQLEnum(MembershipStatus, values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=MembershipStatus.ACTIVE,
        index=True
    )
    profile_photo = Column(String(500), nullable=True)

    # {name, relationship, phone}
    emergency_contact = Column(JSON, nullable=True)

    join_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    notes = Column(Text, nullable=True)

    # Relationships
    payments = relationship(
        "Payment",
        back_populates="member",
        cascade="all, delete-orphan",
        order_by="Payment.id"
    )
    trips = relationship("Trip", secondary="trip_passengers", back_populates="passengers")

    @property
    def full_name(self) -> dict:
        return {"first": self.first_name, "middle": self.middle_name, "last": self.last_name}

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def contact(self) -> dict:
        return {"phone": self.phone, "email": self.email}

    @property
    def payment_records(self) -> list:
        return [p.id for p in self.payments]

    def __repr__(self):
        return f"<Member {self.national_id} - {self.membership_status}>"
