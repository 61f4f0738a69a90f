"""
Seed/demo tool tests.  These call the demo functions directly against the
test database; ``run`` and ``main`` only add session handling and printing.
"""
import pytest
from sqlalchemy import func, select

from blog_api import demo
from blog_api.models import HAS_COMMENTS, NO_COMMENTS, Comment, InitDataConfig, Post, User
from blog_api.security import verify_password

from conftest import async_session_test


async def _seeded_user_ids() -> list[int]:
    async with async_session_test() as session:
        return list(
            (await session.execute(select(User.id).order_by(User.id))).scalars().all()
        )


@pytest.mark.asyncio
async def test_seed_default_data(db_session):
    assert await demo.seed_default_data(db_session) is True
    await db_session.commit()

    async with async_session_test() as session:
        users = (await session.execute(select(User).order_by(User.id))).scalars().all()
        assert [u.username for u in users] == ["seeduser1", "seeduser2"]
        assert [u.post_count for u in users] == [2, 1]
        assert verify_password(demo.DEFAULT_PASSWORD, users[0].password)

        assert (await session.execute(select(func.count()).select_from(Post))).scalar_one() == 3
        assert (await session.execute(select(func.count()).select_from(Comment))).scalar_one() == 5

        config = (await session.execute(select(InitDataConfig))).scalar_one()
        assert config.init_default_data is True


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session):
    assert await demo.seed_default_data(db_session) is True
    await db_session.commit()
    assert await demo.seed_default_data(db_session) is False
    await db_session.commit()

    assert (await db_session.execute(select(func.count()).select_from(User))).scalar_one() == 2


@pytest.mark.asyncio
async def test_seeded_comment_status_matches_comments(db_session):
    await demo.seed_default_data(db_session)
    await db_session.commit()

    posts = (await db_session.execute(select(Post).order_by(Post.id))).scalars().all()
    assert [p.comment_status for p in posts] == [NO_COMMENTS, HAS_COMMENTS, HAS_COMMENTS]


@pytest.mark.asyncio
async def test_find_user_with_posts(db_session):
    await demo.seed_default_data(db_session)
    await db_session.commit()
    user_id = (await _seeded_user_ids())[0]

    async with async_session_test() as session:
        data = await demo.find_user_with_posts(session, user_id)

    assert data["postCount"] == 2
    assert data["mobile"] == "13712341234"
    assert sorted(len(p["comments"]) for p in data["posts"]) == [0, 2]


@pytest.mark.asyncio
async def test_find_unknown_user(db_session):
    assert await demo.find_user_with_posts(db_session, 42) is None


@pytest.mark.asyncio
async def test_most_commented_post(db_session):
    await demo.seed_default_data(db_session)
    await db_session.commit()

    async with async_session_test() as session:
        data = await demo.most_commented_post(session)

    assert data["title"] == "User 2 post 1"
    assert data["commentCount"] == 3
    assert len(data["comments"]) == 3


@pytest.mark.asyncio
async def test_create_post_with_comments(db_session):
    await demo.seed_default_data(db_session)
    await db_session.commit()
    user_id = (await _seeded_user_ids())[0]

    post, post_count = await demo.create_post_with_comments(db_session, user_id)
    await db_session.commit()

    assert post_count == 3
    assert post["commentStatus"] == HAS_COMMENTS
    count = (
        await db_session.execute(
            select(func.count()).select_from(Comment).where(Comment.post_id == post["id"])
        )
    ).scalar_one()
    assert count == 2


@pytest.mark.asyncio
async def test_delete_comments_one_by_one(db_session):
    """The flag stays set until the final per-row delete."""
    await demo.seed_default_data(db_session)
    await db_session.commit()
    post_id = (
        await db_session.execute(select(Post.id).where(Post.title == "User 1 post 2"))
    ).scalar_one()

    steps = await demo.delete_comments_one_by_one(db_session, post_id)
    await db_session.commit()

    assert [status for _, status in steps] == [HAS_COMMENTS, NO_COMMENTS]
    remaining = (
        await db_session.execute(
            select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
        )
    ).scalar_one()
    assert remaining == 0
