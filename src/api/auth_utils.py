"""
Password hashing and sign-in tokens for registered members.

Tokens are HS256 JWTs signed with REG_SECRET_KEY. The fallback key is only
fit for local development.
"""

import os
from datetime import UTC, datetime, timedelta

from jose import jwt
from passlib.context import CryptContext

SECRET_KEY_ENV = "REG_SECRET_KEY"
ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def signing_key() -> str:
    return os.environ.get(SECRET_KEY_ENV, "dev-secret-unsafe")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    result: bool = pwd_context.verify(plain_password, hashed_password)
    return result


def get_password_hash(password: str) -> str:
    result: str = pwd_context.hash(password)
    return result


def create_member_token(
    member_id: int,
    ttl: timedelta,
    now_utc: datetime | None = None,
) -> str:
    """Sign a token whose subject is the member id, valid for ttl from now_utc."""
    issued_at = now_utc if now_utc is not None else datetime.now(UTC)
    claims = {"sub": str(member_id), "iat": issued_at, "exp": issued_at + ttl}
    token: str = jwt.encode(claims, signing_key(), algorithm=ALGORITHM)
    return token
