"""
JWT token-based session utilities for the admin back-office.
Provides token generation, verification and the admin-role guard.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Header, Request
from app.config import settings
from app.models import User


ALGORITHM = "HS256"
SESSION_COOKIE_NAME = "session_token"
ADMIN_ROLE = "ADMIN"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def create_session_token(user: User) -> str:
    """Issue a session token asserting the user's id, email and role."""
    return create_access_token({"sub": user.id, "email": user.email, "role": user.role})


def verify_token(token: str) -> dict:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: If token is invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid token", "Authentication token is invalid or expired")

    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type", "Token is not an access token")

    return payload


def get_current_session(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token for authentication (fallback to cookie)")
) -> dict:
    """
    FastAPI dependency returning the decoded session of the caller.
    Reads the httpOnly session cookie first, then the Authorization header.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    token = request.cookies.get(SESSION_COOKIE_NAME)

    if not token and authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]

    if not token:
        raise _unauthorized("Unauthorized", "Authentication required")

    return verify_token(token)


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token for authentication (fallback to cookie)")
) -> dict:
    """
    FastAPI dependency for admin-only routes.
    A valid session with a role other than ADMIN is rejected like a missing one.
    """
    session = get_current_session(request, authorization)
    if session.get("role") != ADMIN_ROLE:
        raise _unauthorized("Unauthorized", "Admin role required")
    return session
