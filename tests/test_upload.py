"""Tests for batch image upload."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import Image
from app.repositories.catalog import CatalogRepository
from app.services.upload_service import default_title, validate_file


async def _images(db_session: AsyncSession) -> list[Image]:
    result = await db_session.execute(
        select(Image).order_by(Image.order.asc()).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def test_default_title_strips_extension():
    assert default_title("sunset.beach.jpg") == "sunset.beach"
    assert default_title("README") == "README"


def test_validate_file():
    assert validate_file("image/png", 1024) is None
    assert validate_file("application/pdf", 1024) == "Invalid file type"
    assert validate_file(None, 1024) == "Invalid file type"
    assert validate_file("image/jpeg", settings.MAX_UPLOAD_BYTES + 1) == "File exceeds 10MB limit"
    assert validate_file("image/jpeg", settings.MAX_UPLOAD_BYTES) is None


@pytest.mark.asyncio
async def test_upload_batch_creates_images(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, asset_store, image_file
):
    """Each accepted file is stored and recorded with defaults."""
    response = await client.post(
        "/api/images/upload",
        files=[image_file("first.jpg", b"\xff\xd8first"), image_file("second.png", b"\x89PNGsecond", "image/png")],
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Uploaded 2 of 2 images"
    assert [r["success"] for r in data["results"]] == [True, True]
    assert data["results"][0]["image"]["title"] == "first"
    assert data["results"][0]["image"]["isFeatured"] is False

    images = await _images(db_session)
    assert [img.title for img in images] == ["first", "second"]
    assert all(img.is_active for img in images)
    assert images[0].size == len(b"\xff\xd8first")
    assert images[0].tags == []
    assert images[0].album_id is None
    assert {img.cloudinary_id for img in images} == set(asset_store.assets)


@pytest.mark.asyncio
async def test_upload_orders_follow_submission_order(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, image_file
):
    """Orders within a batch increase with file position and never repeat across batches."""
    first = await client.post(
        "/api/images/upload",
        files=[image_file(f"a{i}.jpg", b"a%d" % i) for i in range(3)],
        headers=admin_headers,
    )
    second = await client.post(
        "/api/images/upload",
        files=[image_file(f"b{i}.jpg", b"b%d" % i) for i in range(2)],
        headers=admin_headers,
    )
    assert first.status_code == 200
    assert second.status_code == 200

    images = await _images(db_session)
    assert len({img.order for img in images}) == 5
    assert [img.title for img in images] == ["a0", "a1", "a2", "b0", "b1"]


@pytest.mark.asyncio
async def test_upload_continues_after_invalid_files(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, asset_store, image_file
):
    """Invalid files get a failure entry; the valid ones are still uploaded."""
    too_big = b"\x00" * (settings.MAX_UPLOAD_BYTES + 1)
    response = await client.post(
        "/api/images/upload",
        files=[
            image_file("notes.txt", b"hello", "text/plain"),
            image_file("huge.jpg", too_big),
            image_file("ok.jpg", b"\xff\xd8ok"),
        ],
        headers=admin_headers,
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert results[0] == {"success": False, "filename": "notes.txt", "error": "Invalid file type"}
    assert results[1] == {"success": False, "filename": "huge.jpg", "error": "File exceeds 10MB limit"}
    assert results[2]["success"] is True
    assert response.json()["message"] == "Uploaded 1 of 3 images"
    assert len(asset_store.assets) == 1
    assert [img.title for img in await _images(db_session)] == ["ok"]


@pytest.mark.asyncio
async def test_upload_all_failed_still_returns_200(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, asset_store, image_file
):
    asset_store.fail_payloads.add(b"broken")
    response = await client.post(
        "/api/images/upload",
        files=[image_file("broken.jpg", b"broken")],
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["results"] == [
        {"success": False, "filename": "broken.jpg", "error": "Upload failed"}
    ]
    assert response.json()["message"] == "Uploaded 0 of 1 images"
    assert await _images(db_session) == []


@pytest.mark.asyncio
async def test_upload_with_album_and_flags(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, sample_album, image_file
):
    response = await client.post(
        "/api/images/upload",
        files=[image_file("bride.jpg")],
        data={"albumId": "album-001", "isFeatured": "true", "isActive": "false"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["results"][0]["image"]["isFeatured"] is True

    [image] = await _images(db_session)
    assert image.album_id == "album-001"
    assert image.is_featured is True
    assert image.is_active is False


@pytest.mark.asyncio
async def test_upload_legacy_gallery_id_field(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, sample_album, image_file
):
    response = await client.post(
        "/api/images/upload",
        files=[image_file("legacy.jpg")],
        data={"galleryId": "album-001"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    [image] = await _images(db_session)
    assert image.album_id == "album-001"


@pytest.mark.asyncio
async def test_upload_unknown_album(client: AsyncClient, admin_headers: dict, asset_store, image_file):
    """An unknown album rejects the batch before anything is stored."""
    response = await client.post(
        "/api/images/upload",
        files=[image_file("a.jpg")],
        data={"albumId": "no-such-album"},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Album not found"
    assert asset_store.assets == {}


@pytest.mark.asyncio
async def test_upload_no_files(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/api/images/upload",
        data={"isFeatured": "false"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "No files provided"


@pytest.mark.asyncio
async def test_upload_requires_admin(client: AsyncClient, editor_headers: dict, asset_store, image_file):
    """Missing and non-admin sessions are both rejected with 401."""
    anonymous = await client.post("/api/images/upload", files=[image_file("a.jpg")])
    editor = await client.post("/api/images/upload", files=[image_file("a.jpg")], headers=editor_headers)

    assert anonymous.status_code == 401
    assert editor.status_code == 401
    assert asset_store.assets == {}


@pytest.mark.asyncio
async def test_failed_save_discards_stored_asset(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, asset_store, image_file, monkeypatch
):
    """When the catalog write fails, the uploaded asset is removed again."""
    original_create = CatalogRepository.create_image

    async def flaky_create(self, **fields):
        if fields["title"] == "unlucky":
            raise SQLAlchemyError("insert failed")
        return await original_create(self, **fields)

    monkeypatch.setattr(CatalogRepository, "create_image", flaky_create)

    response = await client.post(
        "/api/images/upload",
        files=[image_file("unlucky.jpg", b"u"), image_file("lucky.jpg", b"l")],
        headers=admin_headers,
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert results[0] == {"success": False, "filename": "unlucky.jpg", "error": "Upload failed"}
    assert results[1]["success"] is True

    images = await _images(db_session)
    assert [img.title for img in images] == ["lucky"]
    assert list(asset_store.assets) == [images[0].cloudinary_id]
    assert len(asset_store.deleted) == 1


@pytest.mark.asyncio
async def test_failed_order_reservation_rolls_back_and_continues(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, asset_store, image_file, monkeypatch
):
    """A failed order reservation is rolled back so the next file can still be saved."""
    original_reserve = CatalogRepository.reserve_order_block
    attempts, rollbacks = [], []

    async def flaky_reserve(self, count):
        attempts.append(count)
        if len(attempts) == 1:
            raise SQLAlchemyError("could not serialize access")
        return await original_reserve(self, count)

    original_rollback = db_session.rollback

    async def tracking_rollback():
        rollbacks.append(1)
        await original_rollback()

    monkeypatch.setattr(CatalogRepository, "reserve_order_block", flaky_reserve)
    monkeypatch.setattr(db_session, "rollback", tracking_rollback)

    response = await client.post(
        "/api/images/upload",
        files=[image_file("first.jpg", b"1"), image_file("second.jpg", b"2")],
        headers=admin_headers,
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert results[0] == {"success": False, "filename": "first.jpg", "error": "Upload failed"}
    assert results[1]["success"] is True
    assert len(rollbacks) == 1
    assert asset_store.assets.keys() == {(await _images(db_session))[0].cloudinary_id}


@pytest.mark.asyncio
async def test_upload_batch_timeout(client: AsyncClient, admin_headers: dict, asset_store, image_file, monkeypatch):
    """A batch over the deadline returns 504 with the results gathered so far."""
    monkeypatch.setattr(settings, "UPLOAD_BATCH_TIMEOUT_SECONDS", 0.05)
    asset_store.upload_delay = 1.0

    response = await client.post(
        "/api/images/upload",
        files=[image_file("slow.jpg")],
        headers=admin_headers,
    )

    assert response.status_code == 504
    data = response.json()
    assert data["error"] == "Upload timed out"
    assert data["message"] == "Uploaded 0 of 1 images"
    assert data["results"] == []
