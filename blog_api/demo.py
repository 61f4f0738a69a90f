"""
Seed and demo tool for the blog schema.

``init`` creates the tables and seeds two users with posts and comments,
exactly once: an ``init_data_config`` row remembers that the default data
is in place.  The other commands show the counter/flag maintenance at
work:

- ``select``  user 1 with posts and comments, plus the most-commented post
- ``create``  a post with two comments for user 1, then user 1's post count
- ``delete``  a post's comments one row at a time, with the comment status
  after each delete (the per-row path, so the status is kept in sync)
"""
import argparse
import asyncio
import json
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_api.config import settings
from blog_api.database import async_session, init_schema
from blog_api.logging_config import configure_logging
from blog_api.models import HAS_COMMENTS, NO_COMMENTS, Comment, InitDataConfig, Post, User
from blog_api.schemas import format_datetime
from blog_api.security import hash_password
from blog_api.services import comment_service, counters

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "123456"

DEFAULT_USERS = [
    {
        "username": "seeduser1",
        "nickname": "Test User 1",
        "mobile": "13712341234",
        "age": 20,
        "posts": [
            {"title": "User 1 post 1", "content": "Post 1 content", "comments": []},
            {
                "title": "User 1 post 2",
                "content": "Post 2 content",
                "comments": ["Post 2 comment 1", "Post 2 comment 2"],
            },
        ],
    },
    {
        "username": "seeduser2",
        "nickname": "Test User 2",
        "mobile": "13712351235",
        "age": None,
        "posts": [
            {
                "title": "User 2 post 1",
                "content": "User 2 post 1 content",
                "comments": ["Post 1 comment 1", "Post 1 comment 2", "Post 1 comment 3"],
            },
        ],
    },
]


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------

async def add_post(
    db: AsyncSession, user_id: int, title: str, content: str, comments: list[str]
) -> Post:
    """Insert a post with its comments and bump the owner's post count."""
    post = Post(
        user_id=user_id,
        title=title,
        content=content,
        comment_status=HAS_COMMENTS if comments else NO_COMMENTS,
    )
    db.add(post)
    await db.flush()
    for text in comments:
        db.add(Comment(post_id=post.id, content=text))
    await db.flush()
    await counters.increment_post_count(db, user_id)
    await db.refresh(post)
    return post


async def seed_default_data(db: AsyncSession) -> bool:
    """
    Insert ``DEFAULT_USERS`` unless the init flag says it was done already.

    Returns True when rows were inserted.
    """
    config = (await db.execute(select(InitDataConfig).limit(1))).scalar_one_or_none()
    if config is not None and config.init_default_data:
        logger.info("default data already initialized")
        return False

    password = hash_password(DEFAULT_PASSWORD)
    for spec in DEFAULT_USERS:
        user = User(
            username=spec["username"],
            nickname=spec["nickname"],
            password=password,
            mobile=spec["mobile"],
            age=spec["age"],
        )
        db.add(user)
        await db.flush()
        for post in spec["posts"]:
            await add_post(db, user.id, post["title"], post["content"], post["comments"])

    if config is None:
        config = InitDataConfig()
        db.add(config)
    config.init_default_data = True
    await db.flush()
    logger.info("default data initialized", extra={"users": len(DEFAULT_USERS)})
    return True


# ---------------------------------------------------------------------------
# Demos
# ---------------------------------------------------------------------------

def _comment_to_dict(comment: Comment) -> dict:
    return {"id": comment.id, "postId": comment.post_id, "content": comment.content}


def _post_to_dict(post: Post, comments: list[Comment] | None = None) -> dict:
    data = {
        "id": post.id,
        "userId": post.user_id,
        "title": post.title,
        "content": post.content,
        "commentStatus": post.comment_status,
        "createdAt": format_datetime(post.created_at),
    }
    if comments is not None:
        data["comments"] = [_comment_to_dict(c) for c in comments]
    return data


async def find_user_with_posts(db: AsyncSession, user_id: int) -> dict | None:
    """Return *user_id* with its posts and each post's comments."""
    q = (
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.posts).selectinload(Post.comments))
    )
    user = (await db.execute(q)).scalar_one_or_none()
    if user is None:
        return None
    return {
        "id": user.id,
        "nickname": user.nickname,
        "mobile": user.mobile,
        "age": user.age,
        "postCount": user.post_count,
        "posts": [_post_to_dict(p, p.comments) for p in user.posts],
    }


async def most_commented_post(db: AsyncSession) -> dict | None:
    """Return the post with the most comments, ties broken by lowest id."""
    comment_count = func.count(Comment.id).label("comment_count")
    q = (
        select(Post, comment_count)
        .outerjoin(Comment, Comment.post_id == Post.id)
        .group_by(Post.id)
        .order_by(comment_count.desc(), Post.id)
        .limit(1)
    )
    row = (await db.execute(q)).first()
    if row is None:
        return None
    post, count = row
    comments = (
        await db.execute(select(Comment).where(Comment.post_id == post.id).order_by(Comment.id))
    ).scalars().all()
    data = _post_to_dict(post, list(comments))
    data["commentCount"] = count
    return data


async def create_post_with_comments(db: AsyncSession, user_id: int) -> tuple[dict, int]:
    """Create a post with two comments; return it and the owner's post count."""
    post = await add_post(
        db,
        user_id,
        "Demo post",
        "Demo post content",
        ["Demo comment 1", "Demo comment 2"],
    )
    post_count = (
        await db.execute(select(User.post_count).where(User.id == user_id))
    ).scalar_one()
    return _post_to_dict(post), post_count


async def delete_comments_one_by_one(db: AsyncSession, post_id: int) -> list[tuple[int, int]]:
    """
    Delete every comment of *post_id* through the per-row path.

    Returns ``(comment_id, comment_status_after_delete)`` for each delete.
    """
    comments = (
        await db.execute(select(Comment).where(Comment.post_id == post_id).order_by(Comment.id))
    ).scalars().all()

    steps = []
    for comment in comments:
        comment_id = comment.id
        await comment_service.remove_comment(db, comment)
        status = (
            await db.execute(select(Post.comment_status).where(Post.id == post_id))
        ).scalar_one()
        steps.append((comment_id, status))
    return steps


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _print_json(label: str, data) -> None:
    print(f"{label}: {json.dumps(data, ensure_ascii=False, indent=2)}")


async def run(command: str, user_id: int = 1, post_id: int | None = None) -> None:
    await init_schema()

    async with async_session() as session:
        if command == "init":
            seeded = await seed_default_data(session)
            print("default data initialized" if seeded else "default data already present")

        elif command == "select":
            _print_json(f"user {user_id}", await find_user_with_posts(session, user_id))
            _print_json("most commented post", await most_commented_post(session))

        elif command == "create":
            post, post_count = await create_post_with_comments(session, user_id)
            _print_json("created post", post)
            print(f"user {user_id} post count: {post_count}")

        elif command == "delete":
            if post_id is None:
                raise SystemExit("--post-id is required for the delete demo")
            for comment_id, status in await delete_comments_one_by_one(session, post_id):
                state = "has comments" if status == HAS_COMMENTS else "no comments"
                print(f"deleted comment {comment_id}; post {post_id} status: {state}")

        await session.commit()


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database and run the demos")
    parser.add_argument("command", choices=["init", "select", "create", "delete"])
    parser.add_argument("--user-id", type=int, default=1, help="User for select/create")
    parser.add_argument("--post-id", type=int, help="Post whose comments the delete demo removes")
    args = parser.parse_args()

    configure_logging(settings)
    asyncio.run(run(args.command, user_id=args.user_id, post_id=args.post_id))


if __name__ == "__main__":
    main()
