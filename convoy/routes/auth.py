import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_current_admin, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from ..security_utils import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        vtcName=user.vtc_name,
        createdAt=user.created_at,
    )


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Log in with username and password (admins and event team)"""
    username = data.username.strip().lower()
    logger.info(f"🔐 Login attempt for {username}")

    user = db.query(User).filter(User.username == username).first()
    # Same response for unknown user and wrong password
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"⚠️ Invalid credentials for {username}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info(f"✅ Login successful: {user.username} ({user.role})")
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id),
        user=user_to_response(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    data: RegisterRequest,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Register a new event team member (admin only)"""
    if data.role == "admin" and current_user.role != "admin":
        logger.warning(f"⚠️ {current_user.username} ({current_user.role}) tried to create an admin account")
        raise HTTPException(status_code=403, detail="Only admins can create admin accounts")

    existing = (
        db.query(User)
        .filter(or_(User.email == data.email, User.username == data.username))
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=400, detail="User with this email or username already exists"
        )

    user = User(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password),
        vtc_name=data.vtcName,
        role=data.role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        db.rollback()
        raise HTTPException(
            status_code=400, detail="User with this email or username already exists"
        ) from e
    db.refresh(user)

    logger.info(f"🆕 User {user.username} ({user.role}) registered by {current_user.username}")
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.id),
        user=user_to_response(user),
    )


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get the current user profile"""
    return user_to_response(current_user)
