"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app import models
from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.repositories.users import UserRepository
from app.services import cloudinary_service
from app.utils.jwt_auth import create_session_token
from app.utils.rate_limit import limiter

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

JPEG_HEADER = b"\xff\xd8\xff\xe0" + b"\x00" * 64
OLD_ASSET_TIMESTAMP = "2024-01-01T00:00:00Z"


class FakeAssetStore:
    """In-memory stand-in for the Cloudinary service functions."""

    def __init__(self):
        self.assets: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_payloads: set[bytes] = set()
        self.fail_deletes = False
        self.upload_delay = 0.0
        # public_id -> created_at; assets without an entry are old
        self.created_at: dict[str, str] = {}
        self._counter = 0

    async def upload_image(self, file, folder=None, public_id=None, max_retries=3):
        if self.upload_delay:
            await asyncio.sleep(self.upload_delay)
        if file in self.fail_payloads:
            raise RuntimeError("Cloudinary upload failed")
        self._counter += 1
        public_id = f"{settings.CLOUDINARY_UPLOAD_FOLDER}/asset_{self._counter}"
        self.assets[public_id] = file
        self.created_at[public_id] = datetime.now(timezone.utc).isoformat()
        return {
            "url": f"https://res.cloudinary.com/demo/image/upload/v1700000000/{public_id}.jpg",
            "public_id": public_id,
            "format": "jpg",
            "width": 1200,
            "height": 800,
            "bytes": len(file),
        }

    async def delete_image(self, public_id, max_retries=3):
        if self.fail_deletes:
            raise RuntimeError("Cloudinary delete failed")
        self.assets.pop(public_id, None)
        self.deleted.append(public_id)
        return {"result": "ok"}

    async def list_assets(self, prefix=None, page_size=500):
        return [
            {"public_id": public_id, "created_at": self.created_at.get(public_id, OLD_ASSET_TIMESTAMP)}
            for public_id in self.assets
        ]


@pytest.fixture(autouse=True)
def app_settings(monkeypatch):
    """Deterministic settings: no rate limits, no WebP re-encoding."""
    monkeypatch.setattr(limiter, "enabled", False)
    monkeypatch.setattr(settings, "CONVERT_UPLOADS_TO_WEBP", False)


@pytest.fixture
def asset_store(monkeypatch) -> FakeAssetStore:
    store = FakeAssetStore()
    monkeypatch.setattr(cloudinary_service, "upload_image", store.upload_image)
    monkeypatch.setattr(cloudinary_service, "delete_image", store.delete_image)
    monkeypatch.setattr(cloudinary_service, "list_assets", store.list_assets)
    return store


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, asset_store) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session: AsyncSession) -> models.User:
    """Create admin user."""
    return await UserRepository(db_session).create_user(
        "admin@example.com", "admin-password", name="Admin", role="ADMIN"
    )


@pytest_asyncio.fixture(scope="function")
async def editor_user(db_session: AsyncSession) -> models.User:
    """Create editor user."""
    return await UserRepository(db_session).create_user(
        "editor@example.com", "editor-password", name="Editor", role="EDITOR"
    )


@pytest.fixture
def admin_headers(admin_user: models.User) -> dict:
    """Create admin authorization headers."""
    return {"Authorization": f"Bearer {create_session_token(admin_user)}"}


@pytest.fixture
def editor_headers(editor_user: models.User) -> dict:
    """Create editor authorization headers."""
    return {"Authorization": f"Bearer {create_session_token(editor_user)}"}


@pytest_asyncio.fixture(scope="function")
async def sample_album(db_session: AsyncSession) -> models.Album:
    """Create an active, featured album."""
    album = models.Album(id="album-001", title="Weddings 2026", category="WEDDING", is_featured=True, order=1)
    db_session.add(album)
    await db_session.commit()
    await db_session.refresh(album)
    return album


@pytest.fixture
def make_image(db_session: AsyncSession):
    """Factory inserting an image row directly."""
    counter = {"n": 0}

    async def _make(**overrides) -> models.Image:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "id": f"image-{n:03d}",
            "title": f"Image {n}",
            "url": f"https://res.cloudinary.com/demo/image/upload/v1700000000/mr-photography/seed_{n}.jpg",
            "cloudinary_id": f"mr-photography/seed_{n}",
            "width": 1200,
            "height": 800,
            "size": 2048,
            "format": "jpg",
            "order": n,
        }
        fields.update(overrides)
        image = models.Image(**fields)
        db_session.add(image)
        await db_session.commit()
        await db_session.refresh(image)
        return image

    return _make


@pytest.fixture
def image_file():
    """Factory for multipart tuples of the `files` upload field."""

    def _file(name: str, content: bytes = JPEG_HEADER, content_type: str = "image/jpeg"):
        return ("files", (name, content, content_type))

    return _file
