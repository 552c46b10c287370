from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from booklog.database import get_db
from booklog.core import validation
from booklog.core.auth import encode_token, require_user_id
from booklog.schemas.common import MessageResponse
from booklog.schemas.user import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdate,
    UserResponse,
    UserMessageResponse,
    LoginResponse,
)
from booklog.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MIN_NICKNAME_LENGTH = 2
MAX_NICKNAME_LENGTH = 50


@router.post("/register", response_model=UserMessageResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    username = validation.clean_str(payload.username)
    password = payload.password
    if not username or not password:
        raise validation.bad_request("Username and password are required")
    if len(username) < MIN_USERNAME_LENGTH:
        raise validation.bad_request("Username must be at least 3 characters long")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise validation.bad_request("Password must be at least 6 characters long")

    try:
        if user_service.username_exists(db, username):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
        user = user_service.create(db, username, password, validation.clean_str(payload.nickname) or None)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to register user %r", username)
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"message": "User created successfully", "user": user}


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    username = validation.clean_str(payload.username)
    if not username or not payload.password:
        raise validation.bad_request("Username and password are required")

    try:
        user = user_service.authenticate(db, username, payload.password)
    except Exception:
        logger.exception("Login failed for %r", username)
        raise HTTPException(status_code=500, detail="Internal server error")
    if not user:
        logger.info("Rejected login for %r", username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    return {"message": "Login successful", "user": user, "token": encode_token(user.id)}


@router.post("/logout", response_model=MessageResponse)
def logout():
    # Tokens are client-held; nothing to revoke server-side
    return {"message": "Logout successful"}


@router.get("/profile", response_model=UserResponse)
def get_profile(user_id: int = Depends(require_user_id), db: Session = Depends(get_db)):
    user = user_service.get_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.put("/profile", response_model=UserMessageResponse)
def update_profile(
    payload: ProfileUpdate,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    nickname = validation.clean_str(payload.nickname)
    if not nickname:
        raise validation.bad_request("Nickname is required")
    if len(nickname) < MIN_NICKNAME_LENGTH:
        raise validation.bad_request("Nickname must be at least 2 characters long")
    if len(nickname) > MAX_NICKNAME_LENGTH:
        raise validation.bad_request("Nickname must be less than 50 characters long")

    try:
        user = user_service.update_profile(db, user_id, nickname)
    except Exception:
        logger.exception("Failed to update profile for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"message": "Profile updated successfully", "user": user}
