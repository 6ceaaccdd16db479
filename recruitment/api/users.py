"""
User API Endpoints
Account lookup for evaluators and above; creation and deletion for admins.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status

from recruitment.api.deps import AdminAuth, AsyncSessionDep, EvaluatorAuth
from recruitment.core.rate_limit import RateLimitDependency, RateLimitTier
from recruitment.schemas.auth import UserResponse
from recruitment.schemas.common import ERROR_RESPONSES, MessageResponse
from recruitment.schemas.users import UserCreateRequest, UserDetailResponse, UserListResponse
from recruitment.services.users import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(RateLimitDependency(RateLimitTier.STRICT))],
)


def _user_detail(user, message: str = "User retrieved successfully") -> UserDetailResponse:
    return UserDetailResponse(message=message, user=UserResponse.model_validate(user))


@router.get("", response_model=UserListResponse, summary="List users")
async def list_users(auth: EvaluatorAuth, db: AsyncSessionDep) -> UserListResponse:
    users = await UserService(db).list_users()
    return UserListResponse(
        message="Users retrieved successfully",
        users=[UserResponse.model_validate(u) for u in users],
        count=len(users),
    )


@router.get("/email/{email}", response_model=UserDetailResponse, summary="Find a user by email")
async def get_user_by_email(email: str, auth: EvaluatorAuth, db: AsyncSessionDep) -> UserDetailResponse:
    return _user_detail(await UserService(db).get_user_by_email(email))


@router.get("/{user_id}", response_model=UserDetailResponse, summary="Get a user")
async def get_user(user_id: UUID, auth: EvaluatorAuth, db: AsyncSessionDep) -> UserDetailResponse:
    return _user_detail(await UserService(db).get_user(user_id))


@router.post(
    "",
    response_model=UserDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a verified account",
)
async def create_user(data: UserCreateRequest, auth: AdminAuth, db: AsyncSessionDep) -> UserDetailResponse:
    """
    Create an account that can log in immediately.

    Admins may create applicants and evaluators; admin accounts require a super admin.
    """
    user = await UserService(db).create_user(data, auth.role)
    return _user_detail(user, "User created successfully")


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(user_id: UUID, auth: AdminAuth, db: AsyncSessionDep) -> MessageResponse:
    await UserService(db).delete_user(user_id, auth.user_id, auth.role)
    return MessageResponse(message="User deleted successfully")
