from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.auth import AuthUser
from blog_api.database import get_db
from blog_api.dependencies import PaginationParams, get_current_user
from blog_api.errors import success
from blog_api.schemas import (
    AUTH_RESPONSES,
    ERROR_RESPONSES,
    ApiResponse,
    CreatePostRequest,
    DeletePostRequest,
    MessageData,
    PageData,
    PostListItem,
    PostResponse,
    UpdatePostRequest,
)
from blog_api.services import post_service

router = APIRouter(prefix="/api/v1/post", tags=["posts"])


@router.post(
    "/create",
    response_model=ApiResponse[PostResponse],
    summary="Create a post",
    description="Create a new post owned by the caller. Requires login.",
    responses=AUTH_RESPONSES,
)
async def create_post(
    data: CreatePostRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success(await post_service.create_post(db, data, current_user.user_id))


@router.put(
    "/update",
    response_model=ApiResponse[PostResponse],
    summary="Update a post",
    description="Change the title and/or content of one of the caller's posts. Requires login.",
    responses=AUTH_RESPONSES,
)
async def update_post(
    data: UpdatePostRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success(await post_service.update_post(db, data, current_user.user_id))


@router.delete(
    "/delete",
    response_model=ApiResponse[MessageData],
    summary="Delete a post",
    description="Delete one of the caller's posts together with its comments. Requires login.",
    responses=AUTH_RESPONSES,
)
async def delete_post(
    data: DeletePostRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await post_service.delete_post(db, data.post_id, current_user.user_id)
    return success({"message": "deleted"})


@router.get(
    "/list",
    response_model=ApiResponse[PageData[PostListItem]],
    summary="List posts",
    description="Paginated posts, newest first. No login required.",
    responses=ERROR_RESPONSES,
)
async def list_posts(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return success(
        await post_service.get_post_list(db, pagination.page, pagination.page_size)
    )
