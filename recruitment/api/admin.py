"""
Super Admin API Endpoints
Role assignment and manual verification.
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends

from recruitment.api.deps import AsyncSessionDep, SuperAdminAuth
from recruitment.core.rate_limit import RateLimitDependency, RateLimitTier
from recruitment.schemas.auth import UserResponse
from recruitment.schemas.common import ERROR_RESPONSES
from recruitment.schemas.users import RoleUpdateRequest, UserDetailResponse, VerificationUpdateRequest
from recruitment.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(RateLimitDependency(RateLimitTier.STRICT))],
)


@router.put("/users/{user_id}/role", response_model=UserDetailResponse, summary="Change a user's role")
async def update_user_role(
    user_id: UUID,
    data: RoleUpdateRequest,
    auth: SuperAdminAuth,
    db: AsyncSessionDep,
) -> UserDetailResponse:
    """
    Assign a role and, for evaluators and admins, a review department.

    Demoting a user to applicant clears their department.
    """
    user = await UserService(db).update_role(user_id, data.role, data.department)
    logger.info(f"User {user_id} role set to {data.role.value} by {auth.user_id}")
    return UserDetailResponse(
        message="User role updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.put("/users/{user_id}/verify", response_model=UserDetailResponse, summary="Set verification")
async def update_user_verification(
    user_id: UUID,
    data: VerificationUpdateRequest,
    auth: SuperAdminAuth,
    db: AsyncSessionDep,
) -> UserDetailResponse:
    user = await UserService(db).set_verified(user_id, data.verified)
    return UserDetailResponse(
        message="User verification updated successfully",
        user=UserResponse.model_validate(user),
    )
