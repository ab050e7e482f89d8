"""Member schemas for request/response validation"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field

from app.models.member import MembershipStatus
from app.schemas.common import CamelModel


class FullName(CamelModel):
    first: str = Field(..., min_length=1)
    middle: Optional[str] = None
    last: str = Field(..., min_length=1)


class Contact(CamelModel):
    phone: str = Field(..., min_length=3)
    email: Optional[EmailStr] = None


class Address(CamelModel):
    street: str
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str = "Saudi Arabia"


class EmergencyContact(CamelModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None


class MemberCreate(CamelModel):
    """Request to register a member"""
    full_name: FullName
    date_of_birth: date
    national_id: str = Field(..., min_length=1, max_length=50)
    contact: Contact
    primary_address: Address
    alternate_address: Optional[Address] = None
    tribe_affiliation: Optional[str] = None
    membership_status: MembershipStatus = MembershipStatus.ACTIVE
    emergency_contact: Optional[EmergencyContact] = None
    join_date: Optional[datetime] = None
    notes: Optional[str] = None


class MemberUpdate(CamelModel):
    """Partial member update; omitted fields are left untouched"""
    full_name: Optional[FullName] = None
    date_of_birth: Optional[date] = None
    national_id: Optional[str] = Field(None, min_length=1, max_length=50)
    contact: Optional[Contact] = None
    primary_address: Optional[Address] = None
    alternate_address: Optional[Address] = None
    tribe_affiliation: Optional[str] = None
    membership_status: Optional[MembershipStatus] = None
    emergency_contact: Optional[EmergencyContact] = None
    join_date: Optional[datetime] = None
    notes: Optional[str] = None


class MemberPayment(CamelModel):
    """Payment as listed under its member"""
    id: int
    amount: float
    payment_date: datetime
    payment_type: str
    payment_method: str
    receipt_number: str
    is_paid: bool


class MemberSummary(CamelModel):
    """Populated member reference"""
    id: int
    full_name: FullName
    national_id: str
    contact: Contact


class MemberResponse(CamelModel):
    id: int
    full_name: FullName
    date_of_birth: date
    national_id: str
    contact: Contact
    primary_address: Address
    alternate_address: Optional[Address] = None
    tribe_affiliation: Optional[str] = None
    membership_status: MembershipStatus
    profile_photo: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None
    join_date: datetime
    notes: Optional[str] = None
    payment_records: List[int] = []
    created_at: datetime
    updated_at: datetime


class MemberDetailResponse(MemberResponse):
    payments: List[MemberPayment] = []
