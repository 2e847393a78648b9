"""
Public gallery routes.
Paginated active images and active albums for the public site.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from app.database import get_db
from app.models import Image
from app.repositories.catalog import CatalogRepository
from app.schemas import (
    AlbumDetailResponse,
    AlbumResponse,
    GalleryImagePublicResponse,
    GalleryImagesPageResponse,
    PaginationMetadata,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/gallery-images", response_model=GalleryImagesPageResponse)
async def get_gallery_images(
    limit: int = 12,
    cursor: Optional[int] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Get paginated active gallery images.

    Implements cursor-based pagination on the display order.

    Args:
        limit: Number of images to return (default: 12, max: 100)
        cursor: Last display order from previous page

    Raises:
        HTTPException: 400 if invalid parameters, 500 if database query fails
    """
    if limit < 1 or limit > 100:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Limit must be between 1 and 100"
        )

    try:
        catalog = CatalogRepository(db)
        # Fetch one extra row to determine if there are more results
        images = await catalog.list_public_images(limit + 1, cursor)

        has_more = len(images) > limit
        if has_more:
            images = images[:limit]

        next_cursor = images[-1].order if images and has_more else None

        total_count = await catalog.count(Image.is_active.is_(True))

        logger.info(
            f"Retrieved {len(images)} gallery images "
            f"(cursor: {cursor}, next: {next_cursor}, has_more: {has_more})"
        )

        return GalleryImagesPageResponse(
            images=[GalleryImagePublicResponse.model_validate(img) for img in images],
            pagination=PaginationMetadata(
                next_cursor=next_cursor,
                has_more=has_more,
                total_count=total_count
            )
        )

    except Exception as e:
        logger.error(f"Failed to retrieve gallery images: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to retrieve gallery images",
                "detail": str(e)
            }
        )


@router.get("/albums", response_model=List[AlbumResponse])
async def list_public_albums(db: AsyncSession = Depends(get_db)):
    """Active albums in display order, with their image counts."""
    catalog = CatalogRepository(db)
    counts = await catalog.album_image_counts()
    return [
        AlbumResponse.model_validate(album).model_copy(update={"image_count": counts.get(album.id, 0)})
        for album in await catalog.list_albums(active_only=True)
    ]


@router.get("/albums/{album_id}", response_model=AlbumDetailResponse)
async def get_public_album(album_id: str, db: AsyncSession = Depends(get_db)):
    """An active album with its active images in display order."""
    catalog = CatalogRepository(db)
    album = await catalog.get_album(album_id)
    if album is None or not album.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Album not found", "detail": f"Album ID {album_id} does not exist"}
        )

    images = await catalog.album_images(album_id, active_only=True)
    album_data = AlbumResponse.model_validate(album).model_dump()
    album_data["image_count"] = len(images)
    return AlbumDetailResponse(
        **album_data,
        images=[GalleryImagePublicResponse.model_validate(img) for img in images],
    )
