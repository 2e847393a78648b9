#!/usr/bin/env python3
"""
Admin Account Setup
Creates a back-office ADMIN account, or resets the password and role of an
existing one. Uses DATABASE_URL from the environment / .env file.
"""
import asyncio
import getpass
import sys
from typing import Optional

from app.database import AsyncSessionLocal, close_db, create_tables
from app.config import settings
from app.repositories.users import UserRepository
from app.utils.auth import hash_password
from app.utils.jwt_auth import ADMIN_ROLE


async def upsert_admin(email: str, password: str, name: Optional[str] = None) -> str:
    """Create or update the admin account. Returns "created" or "updated"."""
    async with AsyncSessionLocal() as session:
        users = UserRepository(session)
        user = await users.get_by_email(email)
        if user is None:
            await users.create_user(email=email, password=password, name=name, role=ADMIN_ROLE)
            return "created"

        fields = {"password_hash": hash_password(password), "role": ADMIN_ROLE}
        if name:
            fields["name"] = name
        await users.update(user, fields)
        return "updated"


async def run(email: str, name: Optional[str] = None) -> int:
    print("=" * 60)
    print("Back-office Admin Account Setup")
    print("=" * 60)
    print()

    # Get password securely (won't echo to screen)
    password = getpass.getpass("Enter admin password: ")

    if len(password) < 8:
        print("\n❌ Error: Password must be at least 8 characters")
        return 1

    password_confirm = getpass.getpass("Confirm password: ")

    if password != password_confirm:
        print("\n❌ Error: Passwords do not match")
        return 1

    print("\n⏳ Hashing password and saving account...")

    try:
        if not settings.DATABASE_URL or settings.AUTO_CREATE_TABLES:
            await create_tables()
        outcome = await upsert_admin(email, password, name)
    except Exception as e:
        print(f"\n❌ Error saving admin account: {str(e)}")
        return 1
    finally:
        await close_db()

    print(f"\n✅ Admin account {outcome}: {email.strip().lower()}")
    return 0


def main():
    if len(sys.argv) < 2:
        print("Usage: create_admin.py <email> [name]")
        sys.exit(2)
    email = sys.argv[1]
    name = sys.argv[2] if len(sys.argv) > 2 else None
    sys.exit(asyncio.run(run(email, name)))


if __name__ == "__main__":
    main()
