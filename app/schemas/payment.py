"""Payment schemas for request/response validation"""
from pydantic import Field
from typing import Optional
from decimal import Decimal
from datetime import datetime

from app.schemas.common import CamelModel, UserSummary
from app.schemas.member import MemberSummary


class InstallmentPlan(CamelModel):
    total_amount: float = Field(..., gt=0)
    number_of_installments: int = Field(..., ge=1)
    paid_installments: int = Field(0, ge=0)


class PaymentCreate(CamelModel):
    """Request to record a payment"""
    member: int = Field(..., description="Member ID")
    amount: Decimal = Field(..., gt=0, description="Amount paid")
    payment_date: Optional[datetime] = None
    payment_method: str = Field(..., min_length=1)
    payment_type: str = Field(..., min_length=1)
    due_date: Optional[datetime] = None
    is_paid: bool = True
    is_installment: bool = False
    installment_plan: Optional[InstallmentPlan] = None
    notes: Optional[str] = None


class PaymentUpdate(CamelModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = Field(None, min_length=1)
    payment_type: Optional[str] = Field(None, min_length=1)
    due_date: Optional[datetime] = None
    is_paid: Optional[bool] = None
    is_installment: Optional[bool] = None
    installment_plan: Optional[InstallmentPlan] = None
    notes: Optional[str] = None


class PaymentResponse(CamelModel):
    id: int
    member_id: int
    member: Optional[MemberSummary] = None
    amount: float
    payment_date: datetime
    payment_method: str
    payment_type: str
    due_date: Optional[datetime] = None
    is_paid: bool
    is_installment: bool
    installment_plan: Optional[InstallmentPlan] = None
    receipt_number: str
    receipt: Optional[str] = None
    collected_by: Optional[UserSummary] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
