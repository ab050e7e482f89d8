"""User model with role-based access"""
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum

import enum

from app.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """User role types"""
    ADMIN = "admin"
    STAFF = "staff"
    MEMBER = "member"


class User(Base, TimestampMixin):
    """Staff account used to operate the association"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda e: [r.value for r in e]),
        nullable=False,
        default=UserRole.MEMBER
    )
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"
