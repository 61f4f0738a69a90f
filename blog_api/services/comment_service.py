"""
Comment service: creation, listing and deletion of comments.

The two delete paths behave differently on purpose:

- ``delete_comment`` removes one identified row and then asks
  ``counters.maybe_reset_comment_status`` whether the post still has
  comments.
- ``delete_comments_for_post`` is a single conditional DELETE and does
  not touch ``Post.comment_status``; callers that need an accurate flag
  afterwards must set it themselves.
"""
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.errors import BadRequestError
from blog_api.models import HAS_COMMENTS, Comment, Post, User
from blog_api.schemas import CreateCommentRequest, format_datetime
from blog_api.services import counters

logger = logging.getLogger(__name__)


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "userId": comment.user_id,
        "content": comment.content,
        "createdAt": format_datetime(comment.created_at),
    }


async def create_comment(db: AsyncSession, data: CreateCommentRequest, user_id: int) -> dict:
    post = await db.get(Post, data.post_id)
    if post is None:
        raise BadRequestError("post not found")

    comment = Comment(post_id=post.id, user_id=user_id, content=data.content)
    db.add(comment)
    if post.comment_status != HAS_COMMENTS:
        post.comment_status = HAS_COMMENTS
    await db.flush()
    await db.refresh(comment)
    return _comment_to_dict(comment)


async def get_comment_list(
    db: AsyncSession, post_id: int, page: int = 1, page_size: int = 10
) -> dict:
    """Return one page of a post's comments, newest first, with author names."""
    total: int = (
        await db.execute(
            select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
        )
    ).scalar_one()

    q = (
        select(Comment, User.username, User.nickname)
        .outerjoin(User, User.id == Comment.user_id)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(q)).all()

    items = []
    for comment, username, nickname in rows:
        item = _comment_to_dict(comment)
        item["username"] = username
        item["nickname"] = nickname
        items.append(item)
    return {"list": items, "total": total}


async def delete_comment(db: AsyncSession, comment_id: int, user_id: int) -> dict:
    """
    Delete a single comment.  Allowed for the comment's author and for
    the owner of the post it belongs to.
    """
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise BadRequestError("comment not found")

    post = await db.get(Post, comment.post_id)
    if user_id != comment.user_id and (post is None or post.user_id != user_id):
        raise BadRequestError("no permission to delete this comment")

    post_id = await remove_comment(db, comment)
    logger.info("comment deleted", extra={"comment_id": comment_id, "post_id": post_id})
    return {"id": comment_id, "postId": post_id}


async def remove_comment(db: AsyncSession, comment: Comment) -> int:
    """
    Per-row delete of *comment*, followed by the comment-status check for
    its post.  Returns the post id.  No permission check.
    """
    post_id, comment_id = comment.post_id, comment.id
    await db.delete(comment)
    await db.flush()
    await counters.maybe_reset_comment_status(db, post_id, comment_id)
    return post_id


async def delete_comments_for_post(db: AsyncSession, post_id: int) -> int:
    """Bulk-delete every comment of *post_id*; returns the number removed."""
    result = await db.execute(delete(Comment).where(Comment.post_id == post_id))
    return result.rowcount
