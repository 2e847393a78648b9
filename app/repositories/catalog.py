"""
Catalog repository: persistence for image and album metadata.
Also owns display-order allocation for newly uploaded images.
"""
import logging
from typing import Any, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Album, Image, Sequence
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

IMAGE_ORDER_SEQUENCE = "image_order"


class CatalogRepository(BaseRepository[Image]):
    """Image and album access for the upload and moderation handlers."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Image)

    # Images

    async def list_images(self) -> list[Image]:
        """All images with their album, featured first, then display order, then newest."""
        result = await self.db.execute(
            select(Image)
            .options(selectinload(Image.album))
            .order_by(Image.is_featured.desc(), Image.order.asc(), Image.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_public_images(self, limit: int, cursor: Optional[int] = None) -> list[Image]:
        """Active images ordered by display order, starting after `cursor`."""
        query = select(Image).where(Image.is_active.is_(True)).order_by(Image.order.asc())
        if cursor is not None:
            query = query.where(Image.order > cursor)
        result = await self.db.execute(query.limit(limit))
        return list(result.scalars().all())

    async def recent_images(self, limit: int = 5) -> list[Image]:
        result = await self.db.execute(
            select(Image)
            .options(selectinload(Image.album))
            .order_by(Image.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def featured_images(self, limit: int = 5) -> list[Image]:
        """Active featured images for the homepage hero slider."""
        result = await self.db.execute(
            select(Image)
            .where(Image.is_active.is_(True), Image.is_featured.is_(True))
            .order_by(Image.order.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_image(self, image_id: str) -> Optional[Image]:
        """Fetch one image with its album summary loaded."""
        result = await self.db.execute(
            select(Image)
            .options(selectinload(Image.album))
            .where(Image.id == image_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_image(self, **fields: Any) -> Image:
        return await self.create(Image(**fields))

    async def update_image(self, image: Image, fields: dict[str, Any]) -> Image:
        """Apply a partial update and return the row reloaded with its album."""
        image_id = image.id
        await self.update(image, fields)
        return await self.get_image(image_id)

    async def delete_image(self, image: Image) -> None:
        await self.delete(image)

    async def list_cloudinary_ids(self) -> set[str]:
        """Storage identifiers referenced by at least one image row."""
        result = await self.db.execute(
            select(Image.cloudinary_id).where(Image.cloudinary_id.is_not(None))
        )
        return set(result.scalars().all())

    async def reserve_order_block(self, count: int) -> int:
        """
        Atomically reserve `count` consecutive display-order values.

        Returns the base offset; the caller assigns `base + index + 1`.
        The counter is advanced in a single UPDATE ... RETURNING so two
        concurrent batches can never receive the same block. It never falls
        behind the highest order already stored (seeded or edited rows).
        """
        max_order = select(func.coalesce(func.max(Image.order), 0)).scalar_subquery()
        stmt = (
            update(Sequence)
            .where(Sequence.name == IMAGE_ORDER_SEQUENCE)
            .values(value=case((Sequence.value >= max_order, Sequence.value), else_=max_order) + count)
            .returning(Sequence.value)
            .execution_options(synchronize_session=False)
        )

        result = await self.db.execute(stmt)
        new_value = result.scalar_one_or_none()

        if new_value is None:
            # First allocation: create the counter row, tolerating a concurrent creator
            try:
                self.db.add(Sequence(name=IMAGE_ORDER_SEQUENCE, value=0))
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
            result = await self.db.execute(stmt)
            new_value = result.scalar_one()

        await self.db.commit()
        base = new_value - count
        logger.info(f"Reserved display order block {base + 1}..{new_value}")
        return base

    # Albums

    async def get_album(self, album_id: str) -> Optional[Album]:
        return await self.db.get(Album, album_id)

    async def list_albums(self, active_only: bool = False) -> list[Album]:
        query = select(Album).order_by(Album.order.asc(), Album.created_at.desc())
        if active_only:
            query = query.where(Album.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def featured_albums(self, limit: int = 6) -> list[Album]:
        result = await self.db.execute(
            select(Album)
            .where(Album.is_active.is_(True), Album.is_featured.is_(True))
            .order_by(Album.order.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def album_images(self, album_id: str, active_only: bool = True, limit: Optional[int] = None) -> list[Image]:
        query = select(Image).where(Image.album_id == album_id).order_by(Image.order.asc())
        if active_only:
            query = query.where(Image.is_active.is_(True))
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def first_active_image(self, album_id: str) -> Optional[Image]:
        images = await self.album_images(album_id, active_only=True, limit=1)
        return images[0] if images else None

    async def count_albums(self) -> int:
        result = await self.db.execute(select(func.count(Album.id)))
        return result.scalar() or 0

    async def album_image_counts(self) -> dict[str, int]:
        result = await self.db.execute(
            select(Image.album_id, func.count(Image.id))
            .where(Image.album_id.is_not(None))
            .group_by(Image.album_id)
        )
        return {album_id: count for album_id, count in result.all()}

    async def create_album(self, **fields: Any) -> Album:
        album = Album(**fields)
        self.db.add(album)
        await self.db.commit()
        await self.db.refresh(album)
        return album

    async def update_album(self, album: Album, fields: dict[str, Any]) -> Album:
        for name, value in fields.items():
            setattr(album, name, value)
        await self.db.commit()
        await self.db.refresh(album)
        return album

    async def delete_album(self, album: Album) -> int:
        """Delete an album, detaching its images. Returns how many were detached."""
        result = await self.db.execute(
            update(Image)
            .where(Image.album_id == album.id)
            .values(album_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(album)
        await self.db.commit()
        return result.rowcount or 0
