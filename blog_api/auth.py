"""
Session authenticator: gates mutating endpoints behind a JWT that is
also the user's single active session in Redis.

A request is accepted only when:

1. an ``Authorization: Bearer <token>`` header is present,
2. the token's signature and expiry verify,
3. ``token:<user_id>`` exists in the token store, and
4. the stored value equals the presented token.

Logging in again overwrites the stored value, so an older token fails
step 4 even though its signature is still valid.
"""
import logging
from dataclasses import dataclass

from jose import ExpiredSignatureError, JWTError
from redis.exceptions import RedisError

from blog_api.cache import TokenStore
from blog_api.config import Settings
from blog_api.errors import AuthFailure, UnauthorizedError
from blog_api.security import TokenClaims, create_token, parse_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer"


@dataclass(frozen=True)
class AuthUser:
    user_id: int
    username: str
    nickname: str


def _reject(reason: AuthFailure, message: str) -> UnauthorizedError:
    logger.info("authentication rejected", extra={"reason": reason.value})
    return UnauthorizedError(reason, message)


class SessionAuthenticator:
    def __init__(self, store: TokenStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    async def issue(self, user_id: int, username: str, nickname: str) -> str:
        """
        Mint a token for the user and make it their only valid session.

        Redis errors propagate: a login whose session could not be stored
        must fail rather than hand out an unusable token.
        """
        token = create_token(
            TokenClaims(user_id=user_id, username=username, nickname=nickname),
            secret=self.settings.JWT_SECRET,
            expires_hours=self.settings.JWT_EXPIRES_HOURS,
            issuer=self.settings.JWT_ISSUER,
        )
        await self.store.save(user_id, token, ttl=self.settings.token_ttl_seconds)
        return token

    async def revoke(self, user_id: int) -> None:
        await self.store.delete(user_id)

    async def authenticate(self, authorization: str | None) -> AuthUser:
        if not authorization:
            raise _reject(AuthFailure.MISSING_HEADER, "authorization token not provided")

        parts = authorization.split(" ", 1)
        if len(parts) != 2 or parts[0] != BEARER_PREFIX or not parts[1]:
            raise _reject(AuthFailure.MALFORMED_HEADER, "malformed authorization header")
        token = parts[1]

        try:
            claims = parse_token(token, self.settings.JWT_SECRET)
        except ExpiredSignatureError:
            raise _reject(AuthFailure.SESSION_EXPIRED, "authorization token expired")
        except JWTError:
            raise _reject(AuthFailure.BAD_SIGNATURE, "invalid authorization token")

        try:
            stored = await self.store.load(claims.user_id)
        except RedisError:
            logger.warning("token lookup failed", exc_info=True)
            stored = None
        if stored is None:
            raise _reject(AuthFailure.SESSION_EXPIRED, "authorization token expired")

        if stored != token:
            raise _reject(AuthFailure.SESSION_MISMATCH, "authorization token mismatch")

        return AuthUser(
            user_id=claims.user_id,
            username=claims.username,
            nickname=claims.nickname,
        )
