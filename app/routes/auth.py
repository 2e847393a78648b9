"""
Authentication routes for the admin back-office.
Email/password login against bcrypt hashes, issuing a JWT session cookie.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config import settings
from app.database import get_db
from app.repositories.users import UserRepository
from app.schemas import LoginRequest, LoginResponse, UserResponse
from app.utils.jwt_auth import SESSION_COOKIE_NAME, create_session_token, get_current_session
from app.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Log in with email and password.
    Sets an httpOnly session cookie and also returns the token for API clients.

    Raises:
        HTTPException: 401 if the credentials do not match
    """
    user = await UserRepository(db).authenticate(credentials.email, credentials.password)
    if user is None:
        logger.info(f"Failed login attempt for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Incorrect email or password"}
        )

    token = create_session_token(user)
    expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=expires_in,
        httponly=True,
        samesite="lax",
    )

    logger.info(f"User logged in: {user.email} (role: {user.role})")
    return LoginResponse(
        access_token=token,
        expires_in=expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def me(session: dict = Depends(get_current_session), db: AsyncSession = Depends(get_db)):
    """The account behind the current session."""
    user = await UserRepository(db).get_by_id(session.get("sub"))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Unauthorized", "message": "Session user no longer exists"}
        )
    return UserResponse.model_validate(user)
