"""
Password hashing and JWT helpers.

Tokens are HS256 JWTs carrying the user's id, username and nickname.
A random ``jti`` makes every minted token unique, so two logins inside
the same second still produce different strings.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    nickname: str


def create_token(
    claims: TokenClaims,
    secret: str,
    expires_hours: int,
    issuer: str,
    now: datetime | None = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "user_id": claims.user_id,
        "username": claims.username,
        "nickname": claims.nickname,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=expires_hours),
        "iss": issuer,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def parse_token(token: str, secret: str) -> TokenClaims:
    """
    Verify *token* and return its claims.

    Raises ``jose.ExpiredSignatureError`` when ``exp`` has passed and
    ``jose.JWTError`` for any other signature or claim problem.
    """
    payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    try:
        return TokenClaims(
            user_id=int(payload["user_id"]),
            username=payload["username"],
            nickname=payload["nickname"],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise JWTError(f"malformed claims: {exc}") from exc
