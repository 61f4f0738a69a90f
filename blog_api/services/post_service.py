"""
Post service: business logic for the Post aggregate.

Design notes
------------
- ``create_post`` calls ``counters.increment_post_count`` itself once the
  post row is flushed; a failed counter update never undoes the post.
- Update and delete are owner-only.  Deleting a post removes its
  comments with one bulk DELETE, which by design does not go through the
  per-row comment-status maintenance.
- The list view joins posts to their author in a single SELECT.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
import math

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.errors import BadRequestError
from blog_api.models import Post, User
from blog_api.schemas import CreatePostRequest, UpdatePostRequest, format_datetime
from blog_api.services import comment_service, counters

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "post not found"


def _post_to_dict(post: Post) -> dict:
    return {
        "id": post.id,
        "userId": post.user_id,
        "title": post.title,
        "content": post.content,
        "commentStatus": post.comment_status,
        "createdAt": format_datetime(post.created_at),
        "updatedAt": format_datetime(post.updated_at),
    }


async def _get_owned_post(db: AsyncSession, post_id: int, user_id: int, action: str) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise BadRequestError(POST_NOT_FOUND)
    if post.user_id != user_id:
        raise BadRequestError(f"no permission to {action} this post")
    return post


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, data: CreatePostRequest, user_id: int) -> dict:
    post = Post(user_id=user_id, title=data.title, content=data.content)
    db.add(post)
    await db.flush()
    await db.refresh(post)

    await counters.increment_post_count(db, user_id)
    logger.info("post created", extra={"post_id": post.id, "user_id": user_id})
    return _post_to_dict(post)


async def update_post(db: AsyncSession, data: UpdatePostRequest, user_id: int) -> dict:
    """
    Apply the non-empty fields of *data* to the caller's post.

    A request with neither title nor content leaves the post unchanged.
    """
    post = await _get_owned_post(db, data.post_id, user_id, "update")

    changes = data.model_dump(include={"title", "content"}, exclude_none=True)
    if changes:
        for field, value in changes.items():
            setattr(post, field, value)
        await db.flush()
        await db.refresh(post)
    return _post_to_dict(post)


async def delete_post(db: AsyncSession, post_id: int, user_id: int) -> None:
    post = await _get_owned_post(db, post_id, user_id, "delete")

    removed = await comment_service.delete_comments_for_post(db, post_id)
    await db.delete(post)
    await db.flush()
    logger.info(
        "post deleted",
        extra={"post_id": post_id, "user_id": user_id, "comments_removed": removed},
    )


async def get_post_list(db: AsyncSession, page: int = 1, page_size: int = 10) -> dict:
    """
    Return one page of posts, newest first, each joined with its author's
    username and nickname.
    """
    total: int = (await db.execute(select(func.count()).select_from(Post))).scalar_one()

    q = (
        select(Post, User.username, User.nickname)
        .join(User, User.id == Post.user_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(q)).all()

    items = []
    for post, username, nickname in rows:
        item = _post_to_dict(post)
        item["username"] = username
        item["nickname"] = nickname
        items.append(item)

    return {
        "list": items,
        "total": total,
        "pages": math.ceil(total / page_size) if total > 0 else 0,
    }
