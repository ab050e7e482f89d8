"""Member registry endpoints"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload
from typing import Optional, Union
import logging

from app.db.session import get_db
from app.models.member import Member, MembershipStatus
from app.models.user import User
from app.schemas.member import MemberCreate, MemberDetailResponse, MemberResponse, MemberUpdate
from app.dependencies.policy import authorize
from app.services.file_storage import file_storage
from app.utils.responses import commit_or_conflict, dump, internal_error, listing, paginate

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_NATIONAL_ID = "A member with this national ID already exists"
REQUIRED_COLUMNS = {"date_of_birth", "national_id", "membership_status", "join_date"}
PLAIN_COLUMNS = ("date_of_birth", "national_id", "tribe_affiliation", "membership_status", "join_date", "notes")
JSON_COLUMNS = ("primary_address", "alternate_address", "emergency_contact")


def member_columns(payload: Union[MemberCreate, MemberUpdate]) -> dict:
    """Flatten a member payload into column values, keeping only fields the client sent"""
    sent = payload.model_fields_set
    values = {}

    if "full_name" in sent and payload.full_name is not None:
        values.update(
            first_name=payload.full_name.first,
            middle_name=payload.full_name.middle,
            last_name=payload.full_name.last,
        )
    if "contact" in sent and payload.contact is not None:
        values.update(phone=payload.contact.phone, email=payload.contact.email)

    for name in JSON_COLUMNS:
        if name in sent:
            value = getattr(payload, name)
            if value is None and name == "primary_address":
                continue
            values[name] = value.model_dump(by_alias=True) if value is not None else None

    for name in PLAIN_COLUMNS:
        if name in sent:
            value = getattr(payload, name)
            if value is None and name in REQUIRED_COLUMNS:
                continue
            values[name] = value

    return values


def get_member_or_404(db: Session, member_id: int) -> Member:
    member = db.query(Member)\
        .options(selectinload(Member.payments))\
        .filter(Member.id == member_id)\
        .first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


def national_id_taken(db: Session, national_id: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Member.id).filter(Member.national_id == national_id)
    if exclude_id is not None:
        query = query.filter(Member.id != exclude_id)
    return query.first() is not None


@router.get("")
async def list_members(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[MembershipStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    current_user: User = Depends(authorize("members", "read")),
    db: Session = Depends(get_db)
):
    """
    List members, newest first

    ``search`` matches first name, last name or national ID (case-insensitive).
    """
    query = db.query(Member).options(selectinload(Member.payments))

    if status_filter:
        query = query.filter(Member.membership_status == status_filter)

    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Member.first_name.ilike(term),
            Member.last_name.ilike(term),
            Member.national_id.ilike(term),
        ))

    query = query.order_by(Member.join_date.desc(), Member.id.desc())
    return listing(MemberResponse, paginate(query, page, limit))


@router.get("/{member_id}")
async def get_member(
    member_id: int,
    current_user: User = Depends(authorize("members", "read")),
    db: Session = Depends(get_db)
):
    member = get_member_or_404(db, member_id)
    return {"success": True, "data": dump(MemberDetailResponse, member)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_member(
    payload: MemberCreate,
    current_user: User = Depends(authorize("members", "create")),
    db: Session = Depends(get_db)
):
    if national_id_taken(db, payload.national_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_NATIONAL_ID)

    try:
        member = Member(**member_columns(payload))
        db.add(member)
        commit_or_conflict(db, DUPLICATE_NATIONAL_ID)
        db.refresh(member)
        return {"success": True, "data": dump(MemberResponse, member)}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise internal_error("Error creating member", e)


@router.put("/{member_id}")
async def update_member(
    member_id: int,
    payload: MemberUpdate,
    current_user: User = Depends(authorize("members", "update")),
    db: Session = Depends(get_db)
):
    member = get_member_or_404(db, member_id)

    values = member_columns(payload)
    new_national_id = values.get("national_id")
    if new_national_id and new_national_id != member.national_id:
        if national_id_taken(db, new_national_id, exclude_id=member.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_NATIONAL_ID)

    try:
        for column, value in values.items():
            setattr(member, column, value)
        commit_or_conflict(db, DUPLICATE_NATIONAL_ID)
        db.refresh(member)
        return {"success": True, "data": dump(MemberResponse, member)}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise internal_error("Error updating member", e)


@router.delete("/{member_id}")
async def delete_member(
    member_id: int,
    current_user: User = Depends(authorize("members", "delete")),
    db: Session = Depends(get_db)
):
    """
    Delete a member together with their payments and trip passenger links
    """
    member = get_member_or_404(db, member_id)
    photo = member.profile_photo

    try:
        db.delete(member)
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error deleting member", e)

    file_storage.delete(photo)
    return {"success": True, "data": {}}


@router.put("/{member_id}/photo")
async def upload_member_photo(
    member_id: int,
    profile_photo: UploadFile = File(..., alias="profilePhoto"),
    current_user: User = Depends(authorize("members", "upload")),
    db: Session = Depends(get_db)
):
    member = get_member_or_404(db, member_id)

    try:
        url = await file_storage.save_upload(profile_photo, "photo", prefix=f"member-{member.id}")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    previous = member.profile_photo
    member.profile_photo = url
    db.commit()
    db.refresh(member)
    file_storage.delete(previous)

    return {"success": True, "data": dump(MemberResponse, member)}
