"""User repository for back-office accounts."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import User
from app.repositories.base import BaseRepository
from app.utils.auth import hash_password, verify_password


class UserRepository(BaseRepository[User]):
    """User lookup, authentication and management."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.asc()))
        return list(result.scalars().all())

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user when the credentials match, otherwise None."""
        user = await self.get_by_email(email)
        if not user or not user.password_hash:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    async def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: str = "EDITOR",
    ) -> User:
        user = User(
            email=email.strip().lower(),
            name=name,
            password_hash=hash_password(password),
            role=role,
        )
        return await self.create(user)
