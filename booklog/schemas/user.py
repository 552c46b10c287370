from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    id: int
    username: str
    nickname: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    nickname: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    nickname: Optional[str] = None


class UserMessageResponse(BaseModel):
    message: str
    user: UserResponse


class LoginResponse(UserMessageResponse):
    token: str
