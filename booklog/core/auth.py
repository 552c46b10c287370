"""
Pseudo-authentication helpers.

Identity is read from a ``user-id`` cookie or from a Bearer token that is
just base64-encoded JSON (``{"userId": 1}``). Nothing is signed or
verified: this is a placeholder for real authentication, not a
substitute for it.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional

from fastapi import HTTPException, Request, status

from booklog.core.config import settings

logger = logging.getLogger(__name__)

USER_ID_COOKIE = "user-id"


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def encode_token(user_id: int) -> str:
    """Build the pseudo-token handed out at login."""
    return base64.b64encode(json.dumps({"userId": user_id}).encode("utf-8")).decode("ascii")


def decode_token(token: str) -> Optional[int]:
    """Return the userId carried by a pseudo-token, or None when it is malformed."""
    try:
        payload = json.loads(base64.b64decode(token, validate=False).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return _positive_int(payload.get("userId"))


def _positive_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization")
    if not auth:
        return None
    parts = auth.split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1]


def resolve_user_id(request: Request) -> Optional[int]:
    """Cookie first, then Bearer pseudo-token. None when neither yields a user id."""
    user_id = _positive_int(request.cookies.get(USER_ID_COOKIE))
    if user_id:
        return user_id

    token = _extract_bearer_token(request)
    if token:
        return decode_token(token)
    return None


def get_current_user_id(request: Request) -> int:
    """
    FastAPI dependency for read endpoints: falls back to the configured
    default user when the request carries no identity.
    """
    user_id = resolve_user_id(request)
    if user_id is None:
        logger.warning("No user ID found in request, using default user ID %s", settings.DEFAULT_USER_ID)
        return settings.DEFAULT_USER_ID
    return user_id


def require_user_id(request: Request) -> int:
    """FastAPI dependency for endpoints that must know who is calling."""
    user_id = resolve_user_id(request)
    if user_id is None:
        raise _unauthorized()
    return user_id
