# app/core/jwt.py

"""
Session tokens. Access tokens carry the user's permission summary, refresh
tokens carry only the subject. The ``scope`` claim keeps one from being used
as the other.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_SCOPE = "access"
REFRESH_SCOPE = "refresh"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _issue(claims: dict, lifetime: timedelta, scope: str) -> str:
    payload = {**claims, "exp": datetime.now(timezone.utc) + lifetime, "scope": scope}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _issue(data, lifetime, ACCESS_SCOPE)


def create_refresh_token(data: dict) -> str:
    """Only ``sub`` is kept, the permission summary is rebuilt on refresh"""
    return _issue(
        {"sub": data.get("sub")},
        timedelta(days=settings.refresh_token_expire_days),
        REFRESH_SCOPE,
    )


def verify_token(token: str, scope: str = ACCESS_SCOPE) -> dict:
    """
    Decode a token and check its scope.

    Raises:
        HTTPException: 401 when the token is expired, malformed, signed with
            another key or issued for another scope
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError as e:
        logger.info("Expired token rejected", scope=scope)
        raise _unauthorized("Token has expired") from e
    except JWTError as e:
        logger.warning("Invalid token rejected", scope=scope, error_message=str(e))
        raise _unauthorized("Invalid token") from e

    if payload.get("scope") != scope:
        logger.warning("Token used with the wrong scope", expected=scope, received=payload.get("scope"))
        raise _unauthorized("Invalid token scope")
    return payload
