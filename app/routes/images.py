"""
Image routes for the admin gallery manager.
Batch upload, listing, partial update and deletion of catalog images.
All endpoints require an admin session.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import asyncio
import logging

from app.config import settings
from app.database import get_db
from app.repositories.catalog import CatalogRepository
from app.schemas import (
    ImageEnvelope,
    ImageListResponse,
    ImageResponse,
    ImageUpdate,
    UploadBatchResponse,
    UploadResult,
)
from app.services import moderation_service
from app.services.moderation_service import ImageNotFoundError
from app.services.upload_service import process_upload_batch, summarize
from app.utils.jwt_auth import require_admin
from app.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["images"])


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogRepository:
    return CatalogRepository(db)


def _image_not_found(image_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "Image not found", "detail": f"Image ID {image_id} does not exist"}
    )


@router.post("/upload", response_model=UploadBatchResponse)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_images(
    request: Request,
    files: Optional[List[UploadFile]] = File(None),
    album_id: Optional[str] = Form(None, alias="albumId"),
    gallery_id: Optional[str] = Form(None, alias="galleryId"),
    is_featured: str = Form("false", alias="isFeatured"),
    is_active: str = Form("true", alias="isActive"),
    session: dict = Depends(require_admin),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """
    Upload a batch of images.

    Each file is validated (image MIME type, size limit) and processed
    independently; the response lists one outcome per submitted file and is
    returned with HTTP 200 even when every file failed.

    Raises:
        HTTPException: 400 if no files, 404 if the album does not exist,
            504 if the batch exceeds UPLOAD_BATCH_TIMEOUT_SECONDS
    """
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No files provided", "detail": "At least one image file is required"}
        )

    target_album_id = album_id or gallery_id or None
    if target_album_id and await catalog.get_album(target_album_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Album not found", "detail": f"Album ID {target_album_id} does not exist"}
        )

    results: List[UploadResult] = []
    try:
        await asyncio.wait_for(
            process_upload_batch(
                files,
                catalog,
                results,
                album_id=target_album_id,
                is_featured=is_featured == "true",
                is_active=is_active != "false",
            ),
            timeout=settings.UPLOAD_BATCH_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error(
            f"Upload batch by {session.get('email')} timed out after "
            f"{settings.UPLOAD_BATCH_TIMEOUT_SECONDS}s ({len(results)} of {len(files)} processed)"
        )
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={
                "error": "Upload timed out",
                "message": summarize(results, len(files)),
                "results": [result.model_dump(mode="json", by_alias=True) for result in results],
            }
        )

    message = summarize(results, len(files))
    logger.info(f"{message} (user: {session.get('email')})")
    return UploadBatchResponse(message=message, results=results)


@router.get("", response_model=ImageListResponse)
async def list_images(
    session: dict = Depends(require_admin),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """
    Get all images with their album summary.
    Ordered featured first, then display order, then newest first.
    """
    try:
        images = await catalog.list_images()
        logger.info(f"Retrieved {len(images)} images for admin")
        return ImageListResponse(images=[ImageResponse.model_validate(img) for img in images])
    except Exception as e:
        logger.error(f"Error fetching images: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch images", "detail": str(e)}
        )


@router.patch("/{image_id}", response_model=ImageEnvelope)
async def update_image(
    image_id: str,
    image_update: ImageUpdate,
    session: dict = Depends(require_admin),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """
    Apply a partial update to an image.
    Only the fields present in the body change.

    Raises:
        HTTPException: 404 if image not found, 400 if a constraint rejects the values,
            500 if update fails
    """
    try:
        updated = await moderation_service.update_image(
            catalog, image_id, image_update.model_dump(exclude_unset=True)
        )
        return ImageEnvelope(image=ImageResponse.model_validate(updated))
    except ImageNotFoundError:
        raise _image_not_found(image_id)
    except IntegrityError as e:
        logger.warning(f"Update image {image_id} rejected by constraint: {str(e.orig)}")
        await catalog.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid image update"}
        )
    except Exception as e:
        logger.error(f"Update image error: {str(e)}", exc_info=True)
        await catalog.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to update image", "detail": str(e)}
        )


@router.delete("/{image_id}")
@limiter.limit(RATE_LIMITS["delete"])
async def delete_image(
    request: Request,
    image_id: str,
    session: dict = Depends(require_admin),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """
    Delete an image and, best-effort, its Cloudinary asset.
    An asset-deletion failure is logged; the image is still deleted.

    Raises:
        HTTPException: 404 if image not found, 500 if deletion fails
    """
    try:
        asset_deleted = await moderation_service.delete_image(catalog, image_id)
        return {
            "message": "Image deleted successfully",
            "imageId": image_id,
            "assetDeleted": asset_deleted,
        }
    except ImageNotFoundError:
        raise _image_not_found(image_id)
    except Exception as e:
        logger.error(f"Delete image error: {str(e)}", exc_info=True)
        await catalog.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete image", "detail": str(e)}
        )
