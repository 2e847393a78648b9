"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "MR Photography API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the MR Photography portfolio site and admin back-office"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    # Empty value falls back to an in-memory SQLite database
    DATABASE_URL: str = ""
    # Create tables on startup instead of running alembic migrations
    AUTO_CREATE_TABLES: bool = False

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_UPLOAD_FOLDER: str = "mr-photography"

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production-use-openssl-rand-hex-32"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # Upload Configuration
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10 MiB per file
    MAX_BATCH_FILES: int = 20
    CONVERT_UPLOADS_TO_WEBP: bool = True
    STORAGE_TIMEOUT_SECONDS: float = 30.0
    UPLOAD_BATCH_TIMEOUT_SECONDS: float = 60.0
    # Unreferenced assets younger than this may belong to an upload still in flight
    RECONCILE_MIN_AGE_SECONDS: float = 600.0

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
