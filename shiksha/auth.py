"""
Nabha Shiksha: Tokens
JWT issued at registration. Bearer token identifies the user on /api/user/me.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
from fastapi import Header

from shiksha.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRY_HOURS
from shiksha.errors import ApiError


def create_token(user_id: str) -> str:
    issued = datetime.now(timezone.utc)
    claims = {"sub": user_id, "iat": issued, "exp": issued + timedelta(hours=JWT_EXPIRY_HOURS)}
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def user_id_from_token(token: str) -> str:
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM], options={"require": ["sub", "exp"]})
    except jwt.ExpiredSignatureError:
        raise ApiError(401, "Token expired", "Please register or sign in again")
    except jwt.InvalidTokenError:
        raise ApiError(401, "Invalid token", "The bearer token could not be verified")
    return claims["sub"]


def get_current_user(authorization: Optional[str] = Header(default=None)) -> str:
    """Dependency: the user id carried by the bearer token."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise ApiError(401, "Missing token", "Send an Authorization: Bearer <token> header")
    return user_id_from_token(token)
