from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.auth import AuthUser
from blog_api.database import get_db
from blog_api.dependencies import PaginationParams, get_current_user
from blog_api.errors import success
from blog_api.schemas import (
    AUTH_RESPONSES,
    ERROR_RESPONSES,
    ApiResponse,
    CommentListItem,
    CommentResponse,
    CreateCommentRequest,
    DeleteCommentRequest,
    PageData,
)
from blog_api.services import comment_service

router = APIRouter(prefix="/api/v1/comment", tags=["comments"])


@router.post(
    "/create",
    response_model=ApiResponse[CommentResponse],
    summary="Create a comment",
    description="Comment on a post. Requires login.",
    responses=AUTH_RESPONSES,
)
async def create_comment(
    data: CreateCommentRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success(await comment_service.create_comment(db, data, current_user.user_id))


@router.get(
    "/list",
    response_model=ApiResponse[PageData[CommentListItem]],
    summary="List comments",
    description="Paginated comments of one post, newest first. No login required.",
    responses=ERROR_RESPONSES,
)
async def list_comments(
    post_id: int = Query(..., ge=1, alias="postId", description="Post ID."),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return success(
        await comment_service.get_comment_list(
            db, post_id, pagination.page, pagination.page_size
        )
    )


@router.delete(
    "/delete",
    response_model=ApiResponse[dict],
    summary="Delete a comment",
    description="Delete a single comment. Allowed for its author and for the "
    "post owner. Clears the post's comment status when the last comment goes. "
    "Requires login.",
    responses=AUTH_RESPONSES,
)
async def delete_comment(
    data: DeleteCommentRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success(
        await comment_service.delete_comment(db, data.comment_id, current_user.user_id)
    )
