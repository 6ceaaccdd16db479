"""User management and super-admin schemas."""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from recruitment.models import Department, UserRole
from recruitment.schemas.auth import PASSWORD_MIN_LENGTH, UserResponse, validate_password_length


class UserCreateRequest(BaseModel):
    """Account created by an admin. Created accounts are already verified."""

    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    reg_num: Optional[str] = Field(None, max_length=50)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    role: UserRole = UserRole.APPLICANT
    department: Optional[Department] = Field(None, description="Review department for evaluators")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_length(v)


class UserDetailResponse(BaseModel):
    message: str
    user: UserResponse


class UserListResponse(BaseModel):
    message: str
    users: List[UserResponse]
    count: int


class RoleUpdateRequest(BaseModel):
    role: UserRole
    department: Optional[Department] = None


class VerificationUpdateRequest(BaseModel):
    verified: bool = True
