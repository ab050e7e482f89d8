"""Expense endpoints with an approval workflow"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session, joinedload
from datetime import date, datetime
from typing import Optional
import logging

from app.config import settings
from app.db.session import get_db
from app.models.expense import ApprovalStatus, Expense
from app.models.user import User
from app.dependencies.policy import authorize
from app.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from app.services.file_storage import file_storage
from app.services.report_service import end_of_day, start_of_day
from app.utils.responses import dump, internal_error, listing, paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def expense_query(db: Session):
    return db.query(Expense).options(
        joinedload(Expense.spent_by),
        joinedload(Expense.approved_by)
    )


def get_expense_or_404(db: Session, expense_id: int) -> Expense:
    expense = expense_query(db).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


def decide(db: Session, expense: Expense, decision: ApprovalStatus, user: User) -> Expense:
    """
    Record an approval decision

    A decided expense can only be decided again when
    EXPENSE_ALLOW_DECISION_OVERRIDE is enabled.
    """
    previous = expense.approval_status
    if previous != ApprovalStatus.PENDING:
        if not settings.EXPENSE_ALLOW_DECISION_OVERRIDE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Expense has already been {previous.value}"
            )
        logger.warning(
            f"Expense {expense.id} decision overridden by user {user.id}: {previous.value} -> {decision.value}"
        )

    expense.approval_status = decision
    expense.approved_by_id = user.id
    db.commit()
    logger.info(f"Expense {expense.id} {decision.value} by user {user.id}")
    return get_expense_or_404(db, expense.id)


@router.get("")
async def list_expenses(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[str] = None,
    approval_status: Optional[ApprovalStatus] = Query(None, alias="approvalStatus"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("expenses", "read")),
    db: Session = Depends(get_db)
):
    """
    List expenses, newest first
    """
    query = expense_query(db)

    if category:
        query = query.filter(Expense.category == category)
    if approval_status:
        query = query.filter(Expense.approval_status == approval_status)
    if start_date and end_date:
        query = query.filter(
            Expense.date >= start_of_day(start_date),
            Expense.date <= end_of_day(end_date)
        )

    query = query.order_by(Expense.date.desc(), Expense.id.desc())
    return listing(ExpenseResponse, paginate(query, page, limit))


@router.get("/{expense_id}")
async def get_expense(
    expense_id: int,
    current_user: User = Depends(authorize("expenses", "read")),
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)
    return {"success": True, "data": dump(ExpenseResponse, expense)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    payload: ExpenseCreate,
    current_user: User = Depends(authorize("expenses", "create")),
    db: Session = Depends(get_db)
):
    """
    Record an expense spent by the current user; it starts out pending
    """
    try:
        expense = Expense(
            category=payload.category,
            amount=payload.amount,
            date=payload.date or datetime.utcnow(),
            purpose=payload.purpose,
            notes=payload.notes,
            approval_status=ApprovalStatus.PENDING,
            spent_by_id=current_user.id
        )
        db.add(expense)
        db.commit()
        return {"success": True, "data": dump(ExpenseResponse, get_expense_or_404(db, expense.id))}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise internal_error("Error creating expense", e)


@router.put("/{expense_id}")
async def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    current_user: User = Depends(authorize("expenses", "update")),
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)

    try:
        for field in payload.model_fields_set:
            value = getattr(payload, field)
            if value is None and field != "notes":
                continue
            setattr(expense, field, value)
        db.commit()
        return {"success": True, "data": dump(ExpenseResponse, get_expense_or_404(db, expense.id))}
    except Exception as e:
        db.rollback()
        raise internal_error("Error updating expense", e)


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    current_user: User = Depends(authorize("expenses", "delete")),
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)
    receipt = expense.receipt

    try:
        db.delete(expense)
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error deleting expense", e)

    file_storage.delete(receipt)
    return {"success": True, "data": {}}


@router.put("/{expense_id}/approve")
async def approve_expense(
    expense_id: int,
    current_user: User = Depends(authorize("expenses", "decide")),
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)
    expense = decide(db, expense, ApprovalStatus.APPROVED, current_user)
    return {"success": True, "data": dump(ExpenseResponse, expense)}


@router.put("/{expense_id}/reject")
async def reject_expense(
    expense_id: int,
    current_user: User = Depends(authorize("expenses", "decide")),
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)
    expense = decide(db, expense, ApprovalStatus.REJECTED, current_user)
    return {"success": True, "data": dump(ExpenseResponse, expense)}


@router.put("/{expense_id}/receipt")
async def upload_expense_receipt(
    expense_id: int,
    receipt: UploadFile = File(...),
    current_user: User = Depends(authorize("expenses", "upload")),
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)

    try:
        url = await file_storage.save_upload(receipt, "receipt", prefix=f"expense-{expense.id}")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    previous = expense.receipt
    expense.receipt = url
    db.commit()
    file_storage.delete(previous)

    return {"success": True, "data": dump(ExpenseResponse, get_expense_or_404(db, expense.id))}
