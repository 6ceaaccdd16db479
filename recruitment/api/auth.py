"""
Authentication API Endpoints
Registration, OTP verification, login, token refresh, password reset,
profile and self-withdrawal.
"""
import logging

from fastapi import APIRouter, Depends, Request, status

from recruitment.api.deps import AsyncSessionDep, CurrentAuth, MailerDep, get_bearer_token
from recruitment.core.rate_limit import RateLimitDependency, RateLimitTier
from recruitment.core.security import refresh_access_token
from recruitment.schemas.auth import (
    AuthResponse,
    ChickenOutResponse,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    ResendOTPRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
    VerifyOTPRequest,
)
from recruitment.schemas.common import ERROR_RESPONSES, MessageResponse
from recruitment.services.applications import ApplicationService
from recruitment.services.auth import AuthService
from recruitment.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(RateLimitDependency(RateLimitTier.STRICT))],
)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset code has been sent"


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new applicant",
)
async def register(data: RegisterRequest, db: AsyncSessionDep, mailer: MailerDep) -> RegisterResponse:
    """
    Create an unverified applicant account and email a verification code.

    - **full_name**, **email**, **reg_num**: applicant identity
    - **password**: minimum 6 characters
    """
    user = await AuthService(db, mailer).register(data)
    return RegisterResponse(
        message="User registered successfully. Please check your email for the verification code.",
        user=UserResponse.model_validate(user),
    )


@router.post("/verify-otp", response_model=AuthResponse, summary="Verify email with OTP")
async def verify_otp(data: VerifyOTPRequest, db: AsyncSessionDep, mailer: MailerDep) -> AuthResponse:
    """Activate the account and return a session token."""
    user, token = await AuthService(db, mailer).verify_otp(data.email, data.otp)
    return AuthResponse(
        message="Email verified successfully",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post("/resend-otp", response_model=MessageResponse, summary="Resend verification code")
async def resend_otp(data: ResendOTPRequest, db: AsyncSessionDep, mailer: MailerDep) -> MessageResponse:
    await AuthService(db, mailer).resend_otp(data.email)
    return MessageResponse(message="A new verification code has been sent to your email")


@router.post("/login", response_model=AuthResponse, summary="Login")
async def login(data: LoginRequest, db: AsyncSessionDep, mailer: MailerDep) -> AuthResponse:
    user, token = await AuthService(db, mailer).login(data.email, data.password)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post("/refresh", response_model=TokenResponse, summary="Refresh session token")
async def refresh(request: Request) -> TokenResponse:
    """Re-issue the presented token with a fresh expiry. The old token must still be valid."""
    return TokenResponse(token=refresh_access_token(get_bearer_token(request)))


@router.post("/forgot-password", response_model=MessageResponse, summary="Request a password reset code")
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSessionDep,
    mailer: MailerDep,
) -> MessageResponse:
    """The response is the same whether or not the email is registered."""
    await AuthService(db, mailer).forgot_password(data.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse, summary="Reset password with code")
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSessionDep,
    mailer: MailerDep,
) -> MessageResponse:
    await AuthService(db, mailer).reset_password(data.email, data.otp, data.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.get("/profile", response_model=ProfileResponse, summary="Current user's profile")
async def profile(auth: CurrentAuth, db: AsyncSessionDep) -> ProfileResponse:
    user = await UserService(db).get_user(auth.user_id)
    return ProfileResponse(user=UserResponse.model_validate(user))


@router.post("/chicken-out", response_model=ChickenOutResponse, summary="Withdraw from recruitment")
async def chicken_out(auth: CurrentAuth, db: AsyncSessionDep) -> ChickenOutResponse:
    """Withdraw the caller and all of their applications. Calling it again is harmless."""
    user, changed = await ApplicationService(db).withdraw(auth.user_id)
    return ChickenOutResponse(
        message="You have withdrawn from recruitment",
        user=UserResponse.model_validate(user),
        withdrawn_applications=changed,
    )
