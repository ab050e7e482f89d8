"""Member payment endpoints"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session, joinedload
from datetime import date, datetime
from typing import Optional
import logging

from app.db.session import get_db
from app.models.member import Member
from app.models.payment import Payment
from app.models.user import User
from app.dependencies.policy import authorize
from app.schemas.payment import PaymentCreate, PaymentResponse, PaymentUpdate
from app.services.file_storage import file_storage
from app.services.payment_service import PaymentService
from app.services.report_service import end_of_day, start_of_day
from app.utils.responses import commit_or_conflict, dump, dump_many, internal_error, listing, paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def payment_query(db: Session):
    return db.query(Payment).options(
        joinedload(Payment.member),
        joinedload(Payment.collected_by)
    )


def get_payment_or_404(db: Session, payment_id: int) -> Payment:
    payment = payment_query(db).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return payment


@router.get("")
async def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    member: Optional[int] = None,
    payment_type: Optional[str] = Query(None, alias="paymentType"),
    is_paid: Optional[bool] = Query(None, alias="isPaid"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("payments", "read")),
    db: Session = Depends(get_db)
):
    """
    List payments, newest first, with member and collector populated
    """
    query = payment_query(db)

    if member is not None:
        query = query.filter(Payment.member_id == member)
    if payment_type:
        query = query.filter(Payment.payment_type == payment_type)
    if is_paid is not None:
        query = query.filter(Payment.is_paid == is_paid)
    if start_date and end_date:
        query = query.filter(
            Payment.payment_date >= start_of_day(start_date),
            Payment.payment_date <= end_of_day(end_date)
        )

    query = query.order_by(Payment.payment_date.desc(), Payment.id.desc())
    return listing(PaymentResponse, paginate(query, page, limit))


@router.get("/member/{member_id}")
async def list_member_payments(
    member_id: int,
    current_user: User = Depends(authorize("payments", "read")),
    db: Session = Depends(get_db)
):
    """
    Payment history of one member, newest first
    """
    payments = db.query(Payment)\
        .options(joinedload(Payment.collected_by))\
        .filter(Payment.member_id == member_id)\
        .order_by(Payment.payment_date.desc(), Payment.id.desc())\
        .all()
    data = dump_many(PaymentResponse, payments)
    return {"success": True, "count": len(data), "data": data}


@router.get("/{payment_id}")
async def get_payment(
    payment_id: int,
    current_user: User = Depends(authorize("payments", "read")),
    db: Session = Depends(get_db)
):
    payment = get_payment_or_404(db, payment_id)
    return {"success": True, "data": dump(PaymentResponse, payment)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: PaymentCreate,
    current_user: User = Depends(authorize("payments", "create")),
    db: Session = Depends(get_db)
):
    """
    Record a payment; the receipt number is generated here
    """
    member = db.query(Member).filter(Member.id == payload.member).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    try:
        payment_date = payload.payment_date or datetime.utcnow()
        payment = Payment(
            member_id=member.id,
            amount=payload.amount,
            payment_date=payment_date,
            payment_method=payload.payment_method,
            payment_type=payload.payment_type,
            due_date=payload.due_date,
            is_paid=payload.is_paid,
            is_installment=payload.is_installment,
            installment_plan=payload.installment_plan.model_dump(by_alias=True) if payload.installment_plan else None,
            receipt_number=PaymentService.generate_receipt_number(db, payment_date),
            collected_by_id=current_user.id,
            notes=payload.notes
        )
        db.add(payment)
        commit_or_conflict(db, "Receipt number already exists, please retry")
        return {"success": True, "data": dump(PaymentResponse, get_payment_or_404(db, payment.id))}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise internal_error("Error creating payment", e)


@router.put("/{payment_id}")
async def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    current_user: User = Depends(authorize("payments", "update")),
    db: Session = Depends(get_db)
):
    payment = get_payment_or_404(db, payment_id)

    try:
        for field in payload.model_fields_set:
            value = getattr(payload, field)
            if field == "installment_plan":
                value = value.model_dump(by_alias=True) if value else None
            elif value is None and field in ("amount", "payment_date", "payment_method", "payment_type", "is_paid", "is_installment"):
                continue
            setattr(payment, field, value)
        db.commit()
        return {"success": True, "data": dump(PaymentResponse, get_payment_or_404(db, payment.id))}
    except Exception as e:
        db.rollback()
        raise internal_error("Error updating payment", e)


@router.delete("/{payment_id}")
async def delete_payment(
    payment_id: int,
    current_user: User = Depends(authorize("payments", "delete")),
    db: Session = Depends(get_db)
):
    """
    Delete a payment; it disappears from the member's payment records
    """
    payment = get_payment_or_404(db, payment_id)
    receipt = payment.receipt

    try:
        db.delete(payment)
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error deleting payment", e)

    file_storage.delete(receipt)
    return {"success": True, "data": {}}


@router.put("/{payment_id}/receipt")
async def upload_payment_receipt(
    payment_id: int,
    receipt: UploadFile = File(...),
    current_user: User = Depends(authorize("payments", "upload")),
    db: Session = Depends(get_db)
):
    payment = get_payment_or_404(db, payment_id)

    try:
        url = await file_storage.save_upload(receipt, "receipt", prefix=f"payment-{payment.id}")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    previous = payment.receipt
    payment.receipt = url
    db.commit()
    file_storage.delete(previous)

    return {"success": True, "data": dump(PaymentResponse, get_payment_or_404(db, payment.id))}
