"""
Repositories for site content: settings, blog posts and testimonials.
These are plain records without behavioral invariants beyond unique keys.
"""
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import BlogCategory, BlogPost, Setting, Testimonial
from app.repositories.base import BaseRepository


class SettingRepository(BaseRepository[Setting]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, Setting)

    async def list_settings(self) -> list[Setting]:
        result = await self.db.execute(select(Setting).order_by(Setting.key.asc()))
        return list(result.scalars().all())

    async def get_values(self, keys: Iterable[str]) -> dict[str, str]:
        """Key/value map for the requested keys that exist."""
        result = await self.db.execute(select(Setting).where(Setting.key.in_(list(keys))))
        return {setting.key: setting.value for setting in result.scalars().all()}

    async def upsert_many(self, values: dict[str, str]) -> list[Setting]:
        existing = {
            setting.key: setting
            for setting in (
                await self.db.execute(select(Setting).where(Setting.key.in_(list(values))))
            ).scalars().all()
        }
        for key, value in values.items():
            if key in existing:
                existing[key].value = value
            else:
                self.db.add(Setting(key=key, value=value))
        await self.db.commit()
        return await self.list_settings()


class BlogRepository(BaseRepository[BlogPost]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, BlogPost)

    def _with_relations(self):
        return select(BlogPost).options(
            selectinload(BlogPost.author), selectinload(BlogPost.category)
        )

    async def get_post(self, post_id: str) -> Optional[BlogPost]:
        result = await self.db.execute(
            self._with_relations()
            .where(BlogPost.id == post_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_published_by_slug(self, slug: str) -> Optional[BlogPost]:
        result = await self.db.execute(
            self._with_relations().where(BlogPost.slug == slug, BlogPost.is_published.is_(True))
        )
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = select(BlogPost.id).where(BlogPost.slug == slug)
        if exclude_id:
            query = query.where(BlogPost.id != exclude_id)
        result = await self.db.execute(query)
        return result.first() is not None

    async def list_posts(self) -> list[BlogPost]:
        result = await self.db.execute(
            self._with_relations().order_by(BlogPost.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_published(self, limit: Optional[int] = None) -> list[BlogPost]:
        """Published posts, newest publication first."""
        query = (
            self._with_relations()
            .where(BlogPost.is_published.is_(True), BlogPost.status == "PUBLISHED")
            .order_by(BlogPost.published_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def save_post(self, post: BlogPost, fields: dict[str, Any]) -> BlogPost:
        """Apply fields, keeping the publish flag and timestamp in step with status."""
        for name, value in fields.items():
            setattr(post, name, value)
        post.is_published = post.status == "PUBLISHED"
        if post.is_published and post.published_at is None:
            post.published_at = datetime.now(timezone.utc)
        if post.id is None:
            self.db.add(post)
        await self.db.flush()
        post_id = post.id
        await self.db.commit()
        return await self.get_post(post_id)

    async def list_categories(self) -> list[BlogCategory]:
        result = await self.db.execute(select(BlogCategory).order_by(BlogCategory.name.asc()))
        return list(result.scalars().all())

    async def get_category(self, category_id: str) -> Optional[BlogCategory]:
        return await self.db.get(BlogCategory, category_id)

    async def category_slug_exists(self, slug: str) -> bool:
        result = await self.db.execute(select(BlogCategory.id).where(BlogCategory.slug == slug))
        return result.first() is not None

    async def create_category(self, **fields: Any) -> BlogCategory:
        category = BlogCategory(**fields)
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category


class TestimonialRepository(BaseRepository[Testimonial]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, Testimonial)

    async def list_testimonials(self, active_only: bool = False) -> list[Testimonial]:
        query = select(Testimonial).order_by(Testimonial.created_at.desc())
        if active_only:
            query = query.where(Testimonial.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def featured(self, limit: int = 6) -> list[Testimonial]:
        result = await self.db.execute(
            select(Testimonial)
            .where(Testimonial.is_active.is_(True), Testimonial.is_featured.is_(True))
            .order_by(Testimonial.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
