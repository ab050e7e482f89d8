"""Dues and donation payment model"""
from datetime import datetime

from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class Payment(Base, TimestampMixin):
    """Payment collected from a member"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)

    # Amounts
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    payment_method = Column(String(50), nullable=False)
    payment_type = Column(String(100), nullable=False, index=True)
    due_date = Column(DateTime, nullable=True)
    is_paid = Column(Boolean, default=True, nullable=False, index=True)

    # Installments: {totalAmount, numberOfInstallments, paidInstallments}
    is_installment = Column(Boolean, default=False, nullable=False)
    installment_plan = Column(JSON, nullable=True)

    receipt_number = Column(String(50), unique=True, nullable=False, index=True)
    receipt = Column(String(500), nullable=True)  # uploaded receipt file

    collected_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    member = relationship("Member", back_populates="payments")
    collected_by = relationship("User")

    def __repr__(self):
        return f"<Payment {self.receipt_number} - {self.amount}>"
