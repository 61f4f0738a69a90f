from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.auth import AuthUser, SessionAuthenticator
from blog_api.database import get_db
from blog_api.dependencies import get_authenticator, get_current_user
from blog_api.errors import success
from blog_api.schemas import (
    AUTH_RESPONSES,
    ERROR_RESPONSES,
    ApiResponse,
    LoginRequest,
    LoginResponse,
    MessageData,
    RegisterRequest,
    UserResponse,
)
from blog_api.services import user_service

router = APIRouter(prefix="/api/v1/user", tags=["users"])


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    summary="Register a user",
    description="Create a new user account.",
    responses=ERROR_RESPONSES,
)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    return success(await user_service.register(db, data))


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Log in",
    description="Check credentials and return a JWT. Any token issued "
    "earlier to the same user stops working.",
    responses=ERROR_RESPONSES,
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    return success(await user_service.login(db, data, authenticator))


@router.post(
    "/logout",
    response_model=ApiResponse[MessageData],
    summary="Log out",
    description="Invalidate the caller's current token. Requires login.",
    responses=AUTH_RESPONSES,
)
async def logout(
    current_user: AuthUser = Depends(get_current_user),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
):
    await user_service.logout(current_user.user_id, authenticator)
    return success({"message": "logged out"})
