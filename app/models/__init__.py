"""Database models for the charity association"""
from app.models.base import Base
from app.models.user import User, UserRole
from app.models.member import Member, MembershipStatus
from app.models.payment import Payment
from app.models.expense import Expense, ApprovalStatus
from app.models.vehicle import Vehicle, VehicleStatus
from app.models.trip import Trip, TripStatus, trip_passengers
from app.models.maintenance import Maintenance

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Member",
    "MembershipStatus",
    "Payment",
    "Expense",
    "ApprovalStatus",
    "Vehicle",
    "VehicleStatus",
    "Trip",
    "TripStatus",
    "trip_passengers",
    "Maintenance",
]
