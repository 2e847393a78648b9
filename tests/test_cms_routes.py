"""Tests for the admin back-office endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app import models


# Albums

@pytest.mark.asyncio
async def test_album_crud(client: AsyncClient, admin_headers: dict, admin_user, make_image):
    created = await client.post(
        "/api/cms/albums",
        json={"title": "Portraits", "category": "PORTRAIT", "isFeatured": True},
        headers=admin_headers,
    )
    assert created.status_code == 201
    album = created.json()
    assert album["authorId"] == admin_user.id
    assert album["imageCount"] == 0

    await make_image(album_id=album["id"])

    updated = await client.patch(
        f"/api/cms/albums/{album['id']}",
        json={"description": "Studio work"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["description"] == "Studio work"
    assert updated.json()["title"] == "Portraits"
    assert updated.json()["imageCount"] == 1

    listing = await client.get("/api/cms/albums", headers=admin_headers)
    assert [a["id"] for a in listing.json()] == [album["id"]]

    deleted = await client.delete(f"/api/cms/albums/{album['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["detachedImages"] == 1


@pytest.mark.asyncio
async def test_album_not_found(client: AsyncClient, admin_headers: dict):
    response = await client.patch("/api/cms/albums/missing", json={"title": "x"}, headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cms_requires_admin(client: AsyncClient, editor_headers: dict):
    assert (await client.get("/api/cms/albums")).status_code == 401
    assert (await client.get("/api/cms/settings", headers=editor_headers)).status_code == 401
    assert (await client.get("/api/cms/dashboard", headers=editor_headers)).status_code == 401


# Settings

@pytest.mark.asyncio
async def test_settings_upsert_and_delete(client: AsyncClient, admin_headers: dict):
    first = await client.put(
        "/api/cms/settings",
        json={"hero_title": "Hello", "contact_email": "hi@example.com"},
        headers=admin_headers,
    )
    assert first.status_code == 200

    second = await client.put("/api/cms/settings", json={"hero_title": "Welcome"}, headers=admin_headers)
    values = {s["key"]: s["value"] for s in second.json()}
    assert values == {"contact_email": "hi@example.com", "hero_title": "Welcome"}

    deleted = await client.delete("/api/cms/settings/hero_title", headers=admin_headers)
    assert deleted.status_code == 200

    remaining = await client.get("/api/cms/settings", headers=admin_headers)
    assert [s["key"] for s in remaining.json()] == ["contact_email"]


@pytest.mark.asyncio
async def test_settings_empty_body(client: AsyncClient, admin_headers: dict):
    response = await client.put("/api/cms/settings", json={}, headers=admin_headers)

    assert response.status_code == 400


# Testimonials

@pytest.mark.asyncio
async def test_testimonial_crud(client: AsyncClient, admin_headers: dict):
    created = await client.post(
        "/api/cms/testimonials",
        json={"clientName": "Ana", "content": "Stunning photos", "rating": 5},
        headers=admin_headers,
    )
    assert created.status_code == 201
    testimonial_id = created.json()["id"]

    updated = await client.patch(
        f"/api/cms/testimonials/{testimonial_id}",
        json={"isFeatured": True},
        headers=admin_headers,
    )
    assert updated.json()["isFeatured"] is True
    assert updated.json()["content"] == "Stunning photos"

    deleted = await client.delete(f"/api/cms/testimonials/{testimonial_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert (await client.get("/api/cms/testimonials", headers=admin_headers)).json() == []


@pytest.mark.asyncio
async def test_testimonial_rating_bounds(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/api/cms/testimonials",
        json={"clientName": "Ana", "content": "Hmm", "rating": 7},
        headers=admin_headers,
    )

    assert response.status_code == 400


# Users

@pytest.mark.asyncio
async def test_user_management(client: AsyncClient, admin_headers: dict, admin_user):
    created = await client.post(
        "/api/cms/users",
        json={"email": "New.Editor@Example.com", "password": "long-enough", "name": "New"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    user = created.json()
    assert user["email"] == "new.editor@example.com"
    assert user["role"] == "EDITOR"
    assert "passwordHash" not in user

    duplicate = await client.post(
        "/api/cms/users",
        json={"email": "new.editor@example.com", "password": "long-enough"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    promoted = await client.patch(f"/api/cms/users/{user['id']}", json={"role": "ADMIN"}, headers=admin_headers)
    assert promoted.json()["role"] == "ADMIN"

    listing = await client.get("/api/cms/users", headers=admin_headers)
    assert {u["email"] for u in listing.json()} == {"admin@example.com", "new.editor@example.com"}

    removed = await client.delete(f"/api/cms/users/{user['id']}", headers=admin_headers)
    assert removed.status_code == 200


@pytest.mark.asyncio
async def test_user_password_change_allows_login(client: AsyncClient, admin_headers: dict, editor_user):
    editor_id = editor_user.id

    response = await client.patch(
        f"/api/cms/users/{editor_id}",
        json={"password": "brand-new-secret"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    login = await client.post(
        "/api/auth/login",
        json={"email": "editor@example.com", "password": "brand-new-secret"},
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_cannot_delete_self(client: AsyncClient, admin_headers: dict, admin_user):
    response = await client.delete(f"/api/cms/users/{admin_user.id}", headers=admin_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_short_password_rejected(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/api/cms/users",
        json={"email": "a@example.com", "password": "short"},
        headers=admin_headers,
    )

    assert response.status_code == 400


# Blog

@pytest.mark.asyncio
async def test_blog_publish_flow(client: AsyncClient, admin_headers: dict):
    category = await client.post(
        "/api/cms/blog/categories",
        json={"name": "Tips", "slug": "tips", "color": "#ffaa00"},
        headers=admin_headers,
    )
    assert category.status_code == 201

    draft = await client.post(
        "/api/cms/blog/posts",
        json={"title": "Lighting", "slug": "lighting", "content": "Use the sun.", "categoryId": category.json()["id"]},
        headers=admin_headers,
    )
    assert draft.status_code == 201
    assert draft.json()["isPublished"] is False
    assert draft.json()["publishedAt"] is None
    assert draft.json()["author"] == {"name": "Admin"}

    assert (await client.get("/api/blog/posts")).json() == []
    assert (await client.get("/api/blog/posts/lighting")).status_code == 404

    published = await client.patch(
        f"/api/cms/blog/posts/{draft.json()['id']}",
        json={"status": "PUBLISHED"},
        headers=admin_headers,
    )
    assert published.json()["isPublished"] is True
    assert published.json()["publishedAt"] is not None

    public = await client.get("/api/blog/posts/lighting")
    assert public.status_code == 200
    assert public.json()["category"]["slug"] == "tips"


@pytest.mark.asyncio
async def test_blog_slug_conflict(client: AsyncClient, admin_headers: dict):
    await client.post("/api/cms/blog/posts", json={"title": "A", "slug": "same"}, headers=admin_headers)

    response = await client.post("/api/cms/blog/posts", json={"title": "B", "slug": "same"}, headers=admin_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_blog_unknown_category(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/api/cms/blog/posts",
        json={"title": "A", "slug": "a", "categoryId": "missing"},
        headers=admin_headers,
    )

    assert response.status_code == 404


# Dashboard

@pytest.mark.asyncio
async def test_dashboard_counts(
    client: AsyncClient, admin_headers: dict, db_session: AsyncSession, make_image, sample_album
):
    await make_image(is_featured=True)
    await make_image(is_active=False)
    db_session.add(models.Testimonial(client_name="Ana", content="Great"))
    await db_session.commit()

    response = await client.get("/api/cms/dashboard", headers=admin_headers)

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats == {
        "totalPhotos": 2,
        "activePhotos": 1,
        "featuredPhotos": 1,
        "totalAlbums": 1,
        "blogPosts": 0,
        "publishedPosts": 0,
        "testimonials": 1,
    }
    assert len(response.json()["recentImages"]) == 2


@pytest.mark.asyncio
async def test_analytics_report(client: AsyncClient, admin_headers: dict):
    response = await client.get("/api/cms/analytics", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"overview", "topPages", "devices", "countries"}
    assert data["overview"]
