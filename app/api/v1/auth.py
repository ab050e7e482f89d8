"""
Authentication endpoints for the charity association API
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
import logging

from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import (
    UserLogin,
    UserRegister,
    UserResponse,
    PasswordChange,
    PasswordReset,
)
from app.utils.auth import verify_password, get_password_hash, create_access_token
from app.utils.responses import commit_or_conflict, dump, dump_many, internal_error
from app.dependencies.auth import get_current_user
from app.dependencies.policy import authorize
from app.middleware.rate_limit import limiter, LOGIN_LIMIT, REGISTER_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "Invalid credentials"


def token_response(user: User) -> dict:
    return {
        "success": True,
        "token": create_access_token(data={"sub": str(user.id), "role": user.role.value}),
        "user": dump(UserResponse, user),
    }


def find_existing_user(db: Session, username: str, email: str) -> Optional[User]:
    """User already holding this username or (lowercased) email"""
    return db.query(User).filter(
        or_(User.username == username, func.lower(User.email) == email)
    ).first()


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: Session = Depends(get_db)
):
    """
    Register a new user
    """
    email = user_data.email.strip().lower()
    existing_user = find_existing_user(db, user_data.username, email)
    if existing_user:
        detail = "Username already exists" if existing_user.username == user_data.username \
            else "Email already registered"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    try:
        new_user = User(
            username=user_data.username,
            email=email,
            password_hash=get_password_hash(user_data.password),
            full_name=user_data.full_name,
            role=user_data.role
        )
        db.add(new_user)
        commit_or_conflict(db, "Username or email already exists")
        db.refresh(new_user)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise internal_error("Error registering user", e)

    logger.info(f"Registered user {new_user.username} ({new_user.role.value})")
    return token_response(new_user)


@router.post("/login")
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Login user and return JWT token
    """
    email_lower = credentials.email.strip().lower()
    user = db.query(User).filter(func.lower(User.email) == email_lower).first()

    # Same answer for unknown email and wrong password
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    return token_response(user)


@router.get("/me")
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    Get current user information
    """
    return {"success": True, "data": dump(UserResponse, current_user)}


@router.get("/users")
async def list_users(
    current_user: User = Depends(authorize("users", "read")),
    db: Session = Depends(get_db)
):
    users = db.query(User).order_by(User.username).all()
    return {"success": True, "count": len(users), "data": dump_many(UserResponse, users)}


@router.put("/resetpassword")
async def reset_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Change the password of the signed-in user
    """
    if not verify_password(password_data.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect"
        )

    current_user.password_hash = get_password_hash(password_data.new_password)
    db.commit()

    return {"success": True, "message": "Password updated successfully"}


@router.post("/forgotpassword")
async def forgot_password(
    reset_data: PasswordReset,
    db: Session = Depends(get_db)
):
    """
    Acknowledge a password reset request; no email is delivered
    """
    user = db.query(User).filter(func.lower(User.email) == reset_data.email.strip().lower()).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No user with that email"
        )

    logger.info(f"Password reset requested for user {user.id}")
    return {"success": True, "message": "Password reset instructions have been sent to your email"}
