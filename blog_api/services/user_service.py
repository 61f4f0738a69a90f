"""
User service: registration, login/logout and soft deletion.

Only live users (``deleted_at == 0``) take part in lookups, so a
soft-deleted username can be registered again.
"""
import logging
import time

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.auth import SessionAuthenticator
from blog_api.errors import BadRequestError
from blog_api.models import User
from blog_api.schemas import LoginRequest, RegisterRequest
from blog_api.security import hash_password, verify_password

logger = logging.getLogger(__name__)

# Same message for unknown user and wrong password.
BAD_CREDENTIALS = "incorrect username or password"


def _user_to_dict(user: User) -> dict:
    return {
        "userId": user.id,
        "username": user.username,
        "nickname": user.nickname,
        "email": user.email,
    }


async def get_live_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(
        select(User).where(User.username == username, User.deleted_at == 0)
    )
    return result.scalar_one_or_none()


async def register(db: AsyncSession, data: RegisterRequest) -> dict:
    """
    Create a user with a bcrypt-hashed password.

    The username check here gives a friendly error; the composite unique
    constraint on (username, deleted_at) still guards concurrent inserts.
    """
    if await get_live_user_by_username(db, data.username) is not None:
        raise BadRequestError("username already exists")

    user = User(
        username=data.username,
        nickname=data.nickname,
        password=hash_password(data.password),
        email=data.email,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        raise BadRequestError("username already exists")
    logger.info("user registered", extra={"user_id": user.id})
    return _user_to_dict(user)


async def login(
    db: AsyncSession, data: LoginRequest, authenticator: SessionAuthenticator
) -> dict:
    user = await get_live_user_by_username(db, data.username)
    if user is None or not verify_password(data.password, user.password):
        raise BadRequestError(BAD_CREDENTIALS)

    token = await authenticator.issue(user.id, user.username, user.nickname)
    logger.info("user logged in", extra={"user_id": user.id})
    return {
        "token": token,
        "userId": user.id,
        "username": user.username,
        "nickname": user.nickname,
    }


async def logout(user_id: int, authenticator: SessionAuthenticator) -> None:
    await authenticator.revoke(user_id)
    logger.info("user logged out", extra={"user_id": user_id})


async def _deletion_stamp(db: AsyncSession, user: User) -> int:
    """
    Unix seconds for ``deleted_at``, moved past any stamp already used by a
    deleted row with the same username or mobile.
    """
    stamp = int(time.time())
    handles = [User.username == user.username]
    if user.mobile:
        handles.append(User.mobile == user.mobile)
    latest = (
        await db.execute(select(func.max(User.deleted_at)).where(or_(*handles)))
    ).scalar_one()
    if latest is not None and latest >= stamp:
        stamp = latest + 1
    return stamp


async def deactivate_user(
    db: AsyncSession, user_id: int, authenticator: SessionAuthenticator | None = None
) -> bool:
    """
    Soft-delete *user_id* by stamping ``deleted_at``.

    When *authenticator* is given the user's session token is revoked as
    well.  Returns False when no live user has that id.
    """
    user = await db.get(User, user_id)
    if user is None or user.deleted_at != 0:
        return False
    user.deleted_at = await _deletion_stamp(db, user)
    await db.flush()
    if authenticator is not None:
        await authenticator.revoke(user_id)
    logger.info("user deactivated", extra={"user_id": user_id})
    return True
