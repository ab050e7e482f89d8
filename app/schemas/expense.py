"""Expense schemas"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.models.expense import ApprovalStatus
from app.schemas.common import CamelModel, UserSummary


class ExpenseCreate(CamelModel):
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    date: Optional[datetime] = None
    purpose: str = Field(..., min_length=1)
    notes: Optional[str] = None


class ExpenseUpdate(CamelModel):
    category: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[datetime] = None
    purpose: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None


class ExpenseResponse(CamelModel):
    id: int
    category: str
    amount: float
    date: datetime
    purpose: str
    receipt: Optional[str] = None
    approval_status: ApprovalStatus
    approved_by: Optional[UserSummary] = None
    spent_by: Optional[UserSummary] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
