from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, field_validator


class LoginRequest(BaseModel):
    username: str
    password: str

    @field_validator("username", "password")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Username and password are required")
        return v


class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str
    vtcName: Optional[str] = None
    role: Literal["admin", "eventteam"] = "eventteam"

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v):
        v = (v or "").strip().lower()
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not v or len(v) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return v


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str
    vtcName: Optional[str] = None
    createdAt: Optional[datetime] = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
