"""
Authentication schemas for registration, OTP verification, login and password reset.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from recruitment.models import Department, UserRole

PASSWORD_MIN_LENGTH = 6
# bcrypt only hashes the first 72 bytes
PASSWORD_MAX_LENGTH = 72


def validate_password_length(password: str) -> str:
    if len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_LENGTH} bytes long")
    return password


class UserResponse(BaseModel):
    """Public view of a user; never includes the password hash or pending codes."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    email: str
    reg_num: Optional[str] = None
    role: UserRole
    verified: bool
    department: Optional[Department] = None
    chickened_out: bool
    created_at: datetime
    updated_at: datetime


class RegisterRequest(BaseModel):
    """Schema for applicant self-registration."""

    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    reg_num: str = Field(..., min_length=1, max_length=50, description="University registration number")
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_length(v)


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=16)


class ResendOTPRequest(BaseModel):
    email: EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=16)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_length(v)


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


class AuthResponse(BaseModel):
    """Returned by login and successful OTP verification."""

    message: str
    user: UserResponse
    token: str


class TokenResponse(BaseModel):
    message: str = "Token refreshed successfully"
    token: str


class ProfileResponse(BaseModel):
    message: str = "Profile retrieved successfully"
    user: UserResponse


class ChickenOutResponse(BaseModel):
    message: str
    user: UserResponse
    withdrawn_applications: int
