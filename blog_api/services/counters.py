"""
Denormalized counter/flag maintenance.

Two stored values are derived from child rows and kept in sync by the
write paths that change those rows:

- ``User.post_count`` is incremented by ``post_service.create_post``.
  It is never decremented, not even when a post is deleted.
- ``Post.comment_status`` is set to 1 by ``comment_service.create_comment``
  and reset to 0 here, when the single-row delete path removes the last
  comment of a post.  Bulk deletes (``DELETE ... WHERE post_id = ?``) do
  not call into this module and leave the flag untouched.

Both updates are best-effort: each runs in its own SAVEPOINT, and a
failure is logged and rolled back to that savepoint without undoing the
primary write that triggered it.  Concurrent deletions on the same post
can still race; nothing here locks.
"""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.models import NO_COMMENTS, Comment, Post, User

logger = logging.getLogger(__name__)


async def increment_post_count(db: AsyncSession, user_id: int) -> bool:
    """
    Add one to ``post_count`` of *user_id*.

    Returns False (after logging) when the update failed.
    """
    try:
        async with db.begin_nested():
            await db.execute(
                update(User)
                .where(User.id == user_id)
                .values(post_count=User.post_count + 1)
            )
    except SQLAlchemyError:
        logger.exception("failed to increment post count", extra={"user_id": user_id})
        return False
    return True


async def maybe_reset_comment_status(
    db: AsyncSession, post_id: int, deleted_comment_id: int
) -> bool:
    """
    Clear ``comment_status`` of *post_id* if no other comment remains.

    *deleted_comment_id* is excluded from the count so the check is
    correct whether or not the delete has been flushed yet.  Returns True
    only when the flag was written.  If the count itself fails the post
    is left alone.
    """
    try:
        async with db.begin_nested():
            remaining = (
                await db.execute(
                    select(func.count())
                    .select_from(Comment)
                    .where(Comment.post_id == post_id, Comment.id != deleted_comment_id)
                )
            ).scalar_one()
    except SQLAlchemyError:
        logger.exception("failed to count remaining comments", extra={"post_id": post_id})
        return False

    if remaining:
        return False

    try:
        async with db.begin_nested():
            await db.execute(
                update(Post).where(Post.id == post_id).values(comment_status=NO_COMMENTS)
            )
    except SQLAlchemyError:
        logger.exception("failed to reset comment status", extra={"post_id": post_id})
        return False
    return True
