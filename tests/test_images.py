"""Tests for image listing and moderation endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Image
from app.services import moderation_service


@pytest.mark.asyncio
async def test_list_images_ordering(client: AsyncClient, admin_headers: dict, make_image):
    """Featured images first, then ascending display order."""
    await make_image(id="late", order=3)
    await make_image(id="hero", order=9, is_featured=True)
    await make_image(id="early", order=1)

    response = await client.get("/api/images", headers=admin_headers)

    assert response.status_code == 200
    assert [img["id"] for img in response.json()["images"]] == ["hero", "early", "late"]


@pytest.mark.asyncio
async def test_list_images_includes_album_summary(
    client: AsyncClient, admin_headers: dict, make_image, sample_album
):
    await make_image(album_id=sample_album.id)
    await make_image()

    response = await client.get("/api/images", headers=admin_headers)

    images = response.json()["images"]
    assert images[0]["album"] == {"id": "album-001", "title": "Weddings 2026", "category": "WEDDING"}
    assert images[0]["albumId"] == "album-001"
    assert images[1]["album"] is None
    assert "cloudinaryId" in images[0]
    assert "createdAt" in images[0]


@pytest.mark.asyncio
async def test_list_images_unauthorized(client: AsyncClient, editor_headers: dict):
    assert (await client.get("/api/images")).status_code == 401
    assert (await client.get("/api/images", headers=editor_headers)).status_code == 401


@pytest.mark.asyncio
async def test_patch_changes_only_given_fields(
    client: AsyncClient, admin_headers: dict, make_image, db_session: AsyncSession
):
    image = await make_image(title="Old", description="Keep me", order=4)

    response = await client.patch(
        f"/api/images/{image.id}",
        json={"title": "New", "isFeatured": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()["image"]
    assert body["title"] == "New"
    assert body["isFeatured"] is True
    assert body["description"] == "Keep me"
    assert body["order"] == 4
    assert body["isActive"] is True

    stored = await db_session.get(Image, image.id, populate_existing=True)
    assert stored.title == "New"
    assert stored.description == "Keep me"


@pytest.mark.asyncio
async def test_patch_assigns_album_and_returns_summary(
    client: AsyncClient, admin_headers: dict, make_image, sample_album
):
    image = await make_image()

    response = await client.patch(
        f"/api/images/{image.id}",
        json={"albumId": sample_album.id, "tags": ["bride", "outdoor"]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()["image"]
    assert body["album"]["title"] == "Weddings 2026"
    assert body["tags"] == ["bride", "outdoor"]


@pytest.mark.asyncio
async def test_patch_can_clear_nullable_field(client: AsyncClient, admin_headers: dict, make_image):
    image = await make_image(description="Temporary")

    response = await client.patch(f"/api/images/{image.id}", json={"description": None}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["image"]["description"] is None


@pytest.mark.asyncio
async def test_patch_unknown_image(client: AsyncClient, admin_headers: dict):
    response = await client.patch("/api/images/missing", json={"title": "x"}, headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "Image not found"


@pytest.mark.asyncio
async def test_patch_rejects_unknown_fields(client: AsyncClient, admin_headers: dict, make_image):
    image = await make_image()

    response = await client.patch(f"/api/images/{image.id}", json={"views": 10}, headers=admin_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["isActive", "isFeatured", "url", "width", "order", "tags"])
async def test_patch_rejects_null_for_required_fields(
    client: AsyncClient, admin_headers: dict, make_image, db_session: AsyncSession, field: str
):
    image = await make_image()

    response = await client.patch(f"/api/images/{image.id}", json={field: None}, headers=admin_headers)

    assert response.status_code == 400
    assert "SQL" not in response.text
    stored = await db_session.get(Image, image.id, populate_existing=True)
    assert stored.is_active is True
    assert stored.url


@pytest.mark.asyncio
async def test_patch_constraint_violation_is_400(
    client: AsyncClient, admin_headers: dict, make_image, monkeypatch
):
    image = await make_image()

    async def violating_update(catalog, image_id, fields):
        raise IntegrityError("UPDATE images SET is_active=?", {}, Exception("NOT NULL constraint failed"))

    monkeypatch.setattr(moderation_service, "update_image", violating_update)

    response = await client.patch(f"/api/images/{image.id}", json={"title": "x"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid image update"}



@pytest.mark.asyncio
async def test_delete_removes_row_and_asset(
    client: AsyncClient, admin_headers: dict, make_image, asset_store, db_session: AsyncSession
):
    image = await make_image()
    asset_store.assets[image.cloudinary_id] = b"binary"

    response = await client.delete(f"/api/images/{image.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "message": "Image deleted successfully",
        "imageId": image.id,
        "assetDeleted": True,
    }
    assert asset_store.deleted == ["mr-photography/seed_1"]
    assert await db_session.get(Image, "image-001", populate_existing=True) is None


@pytest.mark.asyncio
async def test_delete_uses_url_when_storage_id_missing(
    client: AsyncClient, admin_headers: dict, make_image, asset_store
):
    image = await make_image(cloudinary_id=None)

    response = await client.delete(f"/api/images/{image.id}", headers=admin_headers)

    assert response.status_code == 200
    assert asset_store.deleted == ["mr-photography/seed_1"]


@pytest.mark.asyncio
async def test_delete_succeeds_when_asset_store_fails(
    client: AsyncClient, admin_headers: dict, make_image, asset_store, db_session: AsyncSession
):
    """An asset-store failure is reported but the catalog row is still removed."""
    image = await make_image()
    asset_store.fail_deletes = True

    response = await client.delete(f"/api/images/{image.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["assetDeleted"] is False
    assert await db_session.get(Image, "image-001", populate_existing=True) is None


@pytest.mark.asyncio
async def test_delete_unknown_image(client: AsyncClient, admin_headers: dict, asset_store):
    response = await client.delete("/api/images/missing", headers=admin_headers)

    assert response.status_code == 404
    assert asset_store.deleted == []


@pytest.mark.asyncio
async def test_deleted_image_leaves_listing(client: AsyncClient, admin_headers: dict, make_image):
    keep = await make_image()
    drop = await make_image()

    await client.delete(f"/api/images/{drop.id}", headers=admin_headers)
    response = await client.get("/api/images", headers=admin_headers)

    assert [img["id"] for img in response.json()["images"]] == [keep.id]
