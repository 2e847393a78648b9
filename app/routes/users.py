"""
User management routes for the admin back-office.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.database import get_db
from app.repositories.users import UserRepository
from app.schemas import UserCreate, UserResponse, UserUpdate
from app.utils.auth import hash_password
from app.utils.jwt_auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms/users", tags=["CMS"])


def _email_conflict(email: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"error": "Email already in use", "detail": f"A user with email {email} already exists"}
    )


def _user_not_found(user_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "User not found", "detail": f"User ID {user_id} does not exist"}
    )


@router.get("", response_model=List[UserResponse])
async def list_users(session: dict = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return [UserResponse.model_validate(user) for user in await UserRepository(db).list_users()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a back-office account.

    Raises:
        HTTPException: 409 if the email is already registered
    """
    users = UserRepository(db)
    if await users.get_by_email(user_in.email):
        raise _email_conflict(user_in.email)

    user = await users.create_user(user_in.email, user_in.password, name=user_in.name, role=user_in.role)
    logger.info(f"Created user {user.email} (role: {user.role}) by {session.get('email')}")
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_update: UserUpdate,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = UserRepository(db)
    user = await users.get_by_id(user_id)
    if user is None:
        raise _user_not_found(user_id)

    fields = user_update.model_dump(exclude_unset=True)
    if fields.get("email") and fields["email"] != user.email:
        if await users.get_by_email(fields["email"]):
            raise _email_conflict(fields["email"])
    if "password" in fields:
        password = fields.pop("password")
        if password:
            fields["password_hash"] = hash_password(password)

    user = await users.update(user, fields)
    logger.info(f"Updated user {user_id}: {sorted(fields)}")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a back-office account.

    Raises:
        HTTPException: 400 when deleting your own account, 404 if not found
    """
    if user_id == session.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Cannot delete yourself", "detail": "Use another admin account to remove this user"}
        )

    users = UserRepository(db)
    user = await users.get_by_id(user_id)
    if user is None:
        raise _user_not_found(user_id)
    await users.delete(user)
    logger.info(f"Deleted user {user_id} by {session.get('email')}")
    return {"message": "User deleted successfully", "userId": user_id}
