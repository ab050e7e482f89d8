"""Expense model"""
from datetime import datetime

from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, DateTime, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin


class ApprovalStatus(str, enum.Enum):
    """Expense approval status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Expense(Base, TimestampMixin):
    """Money spent on behalf of the association"""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    category = Column(String(100), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    purpose = Column(String(500), nullable=False)
    receipt = Column(String(500), nullable=True)
    approval_status = Column(
        SQLEnum(ApprovalStatus, values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=ApprovalStatus.PENDING,
        index=True
    )
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    spent_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    approved_by = relationship("User", foreign_keys=[approved_by_id])
    spent_by = relationship("User", foreign_keys=[spent_by_id])

    def __repr__(self):
        return f"<Expense {self.category} - {self.amount} ({self.approval_status})>"
