"""
Blog routes.
Public reads of published posts, and the admin blog editor under /cms/blog.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.database import get_db
from app.models import BlogPost
from app.repositories.content import BlogRepository
from app.schemas import (
    BlogCategoryCreate,
    BlogCategoryResponse,
    BlogPostCreate,
    BlogPostResponse,
    BlogPostUpdate,
)
from app.utils.jwt_auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])
cms_router = APIRouter(prefix="/cms/blog", tags=["CMS"])


def _post_not_found(key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "Post not found", "detail": f"Post {key} does not exist"}
    )


def _slug_conflict(slug: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"error": "Slug already in use", "detail": f"Slug '{slug}' is already taken"}
    )


async def _check_category(blog: BlogRepository, category_id) -> None:
    if category_id and await blog.get_category(category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Category not found", "detail": f"Category ID {category_id} does not exist"}
        )


# Public

@router.get("/posts", response_model=List[BlogPostResponse])
async def list_published_posts(db: AsyncSession = Depends(get_db)):
    return [BlogPostResponse.model_validate(post) for post in await BlogRepository(db).list_published()]


@router.get("/posts/{slug}", response_model=BlogPostResponse)
async def get_published_post(slug: str, db: AsyncSession = Depends(get_db)):
    post = await BlogRepository(db).get_published_by_slug(slug)
    if post is None:
        raise _post_not_found(slug)
    return BlogPostResponse.model_validate(post)


@router.get("/categories", response_model=List[BlogCategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return [BlogCategoryResponse.model_validate(c) for c in await BlogRepository(db).list_categories()]


# Admin blog editor

@cms_router.get("/posts", response_model=List[BlogPostResponse])
async def list_all_posts(
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All posts, drafts included, newest first."""
    return [BlogPostResponse.model_validate(post) for post in await BlogRepository(db).list_posts()]


@cms_router.post("/posts", response_model=BlogPostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_in: BlogPostCreate,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a post authored by the current user.

    Raises:
        HTTPException: 404 if the category does not exist, 409 if the slug is taken
    """
    blog = BlogRepository(db)
    if await blog.slug_exists(post_in.slug):
        raise _slug_conflict(post_in.slug)
    await _check_category(blog, post_in.category_id)

    post = await blog.save_post(BlogPost(author_id=session.get("sub")), post_in.model_dump())
    logger.info(f"Created blog post {post.id} ({post.slug}, status={post.status})")
    return BlogPostResponse.model_validate(post)


@cms_router.patch("/posts/{post_id}", response_model=BlogPostResponse)
async def update_post(
    post_id: str,
    post_update: BlogPostUpdate,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    blog = BlogRepository(db)
    post = await blog.get_post(post_id)
    if post is None:
        raise _post_not_found(post_id)

    fields = post_update.model_dump(exclude_unset=True)
    if "slug" in fields and await blog.slug_exists(fields["slug"], exclude_id=post_id):
        raise _slug_conflict(fields["slug"])
    await _check_category(blog, fields.get("category_id"))

    post = await blog.save_post(post, fields)
    logger.info(f"Updated blog post {post_id}: {sorted(fields)}")
    return BlogPostResponse.model_validate(post)


@cms_router.delete("/posts/{post_id}")
async def delete_post(
    post_id: str,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    blog = BlogRepository(db)
    post = await blog.get_by_id(post_id)
    if post is None:
        raise _post_not_found(post_id)
    await blog.delete(post)
    logger.info(f"Deleted blog post {post_id}")
    return {"message": "Post deleted successfully", "postId": post_id}


@cms_router.post("/categories", response_model=BlogCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_in: BlogCategoryCreate,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    blog = BlogRepository(db)
    if await blog.category_slug_exists(category_in.slug):
        raise _slug_conflict(category_in.slug)
    category = await blog.create_category(**category_in.model_dump())
    return BlogCategoryResponse.model_validate(category)
