"""
Password hashing and the JWT pair used for CRM sessions.

Access tokens authorize API and WebSocket calls; refresh tokens carry a
``jti`` that the token table can revoke.
"""
from datetime import datetime, timedelta
from typing import Optional, Literal
import uuid

import jwt
import bcrypt

from realty_crm.config import settings

TokenType = Literal["access", "refresh"]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def token_lifetime(token_type: TokenType) -> timedelta:
    if token_type == "refresh":
        return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_token(
    data: dict,
    token_type: TokenType = "access",
    expires_delta: Optional[timedelta] = None
) -> str:
    """Sign ``data`` (which must carry ``user_id``) as a token of the given type."""
    issued_at = datetime.utcnow()
    claims = {
        **data,
        "exp": issued_at + (expires_delta or token_lifetime(token_type)),
        "iat": issued_at,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return create_token(data, "access", expires_delta)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return create_token(data, "refresh", expires_delta)


def decode_token(token: str) -> Optional[dict]:
    """Payload of a well-signed, unexpired token; None otherwise."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.InvalidTokenError:
        return None


def verify_token(token: str, token_type: TokenType = "access") -> Optional[dict]:
    payload = decode_token(token)
    if payload and payload.get("type") == token_type:
        return payload
    return None
