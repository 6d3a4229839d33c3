"""Authentication and authorization."""

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .domain.entities import UserContext
from .domain.exceptions import ResourceNotFoundException
from .logging_config import get_logger
from .permissions import require_admin
from .services.users import load_user_context

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


def decode_jwt_token(token: str) -> Optional[dict]:
    """
    Decode and validate JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload or None if invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        logger.warning("JWT token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid JWT token", error=str(e))
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> UserContext:
    """
    Get the current user from the bearer token.

    The ``sub`` claim holds the userid; an optional ``team`` claim selects
    the team the session is bound to.

    Raises:
        HTTPException: 401 if the token is missing, invalid, malformed or
            names no known user
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
        )

    payload = decode_jwt_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        userid = int(payload.get("sub") or payload.get("user_id"))
        team = int(payload["team"]) if payload.get("team") is not None else None
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user = load_user_context(db, userid, team)
    except ResourceNotFoundException:
        logger.warning("Token subject does not match a user", userid=userid)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )
    logger.debug("User authenticated", userid=user.userid, team=user.team)
    return user


async def require_admin_user(user: UserContext = Depends(get_current_user)) -> UserContext:
    """Dependency of the admin endpoints."""
    require_admin(user)
    return user
