"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations with PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from urllib.parse import urlparse
import logging

from app.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()

_engine_args = {
    "echo": False,  # Set to True for SQL query logging in development
}

# Pool settings only apply to PostgreSQL (not SQLite)
if settings.DATABASE_URL and settings.DATABASE_URL.startswith("postgresql"):
    _engine_args.update({
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {
                "application_name": "mr-photography-backend"
            }
        }
    })

engine = create_async_engine(
    settings.DATABASE_URL if settings.DATABASE_URL else "sqlite+aiosqlite:///:memory:",
    **_engine_args
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency for database sessions.
    Provides async database session with automatic commit/rollback.

    Usage:
        @app.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            # Use db session here
            pass
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
            raise
        finally:
            await session.close()


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)
    except ValueError as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"

    if not url.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
        return False, (
            "Invalid database URL scheme. Expected postgresql+asyncpg:// or "
            f"sqlite+aiosqlite://, got: {parsed.scheme}"
        )

    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        return False, "No hostname found in DATABASE_URL"

    return True, f"URL format valid. Scheme: {parsed.scheme}, Host: {parsed.hostname or 'local file'}"


async def create_tables():
    """Create all tables from model metadata (development and tests)."""
    # Import models so they register on Base.metadata
    from app import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created from model metadata")


async def init_db():
    """
    Initialize database connection.
    Used by the startup event to verify connectivity.
    """
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not set, using in-memory SQLite database")
        await create_tables()
        return

    is_valid, diagnostic = _validate_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection initialized successfully")
    except Exception as e:
        logger.error(
            f"Database connection failed ({type(e).__name__}): {str(e)}\n"
            f"Diagnostic: {diagnostic}"
        )
        raise

    if settings.AUTO_CREATE_TABLES:
        await create_tables()


async def close_db():
    """
    Close database connections.
    Used by the shutdown event.
    """
    await engine.dispose()
    logger.info("Database connections closed")
