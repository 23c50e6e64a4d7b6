"""
Token and password helpers for the stub API.

Tokens are HS256 JWTs: "sub" is the account id, "role" the account role,
and every token gets a fresh "jti" so two tokens issued for the same
account in the same second still differ (refresh must rotate).
"""

import logging
import os
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

SECRET_KEY = os.environ.get("STOREDESK_STUB_SECRET", "storedesk-stub-secret")
ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=24)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def get_password_hash(password: str) -> str:
    hashed: str = pwd_context.hash(password)
    return hashed


def verify_password(plain_password: str, hashed_password: str) -> bool:
    ok: bool = pwd_context.verify(plain_password, hashed_password)
    return ok


def create_access_token(
    claims: dict[str, Any],
    expires_delta: timedelta | None = None,
    now_utc: datetime | None = None,
) -> str:
    """
    Sign a token carrying the given claims.

    Args:
        claims: Claims to encode ("sub" and "role" for account tokens)
        expires_delta: Lifetime; defaults to TOKEN_TTL
        now_utc: Issue time (for tests); defaults to the current time
    """
    issued_at = now_utc if now_utc is not None else datetime.now(UTC)
    payload = {
        **claims,
        "iat": issued_at,
        "exp": issued_at + (expires_delta or TOKEN_TTL),
        "jti": uuid4().hex,
    }
    token: str = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    return token


def issue_token(account: dict[str, Any]) -> str:
    return create_access_token({"sub": account["_id"], "role": account["role"]})


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Claims of a valid token; None when expired, tampered with or not a JWT."""
    try:
        return cast(dict[str, Any], jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM]))
    except ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except JWTError:
        logger.debug("Rejected malformed token")
        return None
