"""
Upload handler: validates a batch of image files, stores each accepted file
in Cloudinary and records it in the catalog.

Files are processed one at a time in submission order. A failure on one
file is recorded in its result entry and never aborts the rest of the batch.
"""
import asyncio
import logging
import re
from typing import List, Optional

from fastapi import UploadFile

from app.config import settings
from app.repositories.catalog import CatalogRepository
from app.schemas import ImageSummary, UploadFailure, UploadResult, UploadSuccess
from app.services import cloudinary_service
from app.utils.image_converter import prepare_upload_bytes

logger = logging.getLogger(__name__)

UPLOAD_FAILED = "Upload failed"
INVALID_TYPE = "Invalid file type"


def too_large_message() -> str:
    return f"File exceeds {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit"


def default_title(filename: str) -> str:
    """Filename with its extension stripped."""
    return re.sub(r"\.[^/.]+$", "", filename)


def validate_file(content_type: Optional[str], size: int) -> Optional[str]:
    """Return the rejection reason for a file, or None when it is acceptable."""
    if not content_type or not content_type.startswith("image/"):
        return INVALID_TYPE
    if size > settings.MAX_UPLOAD_BYTES:
        return too_large_message()
    return None


async def _discard_asset(public_id: str) -> None:
    """Best-effort removal of an asset whose catalog row could not be written."""
    try:
        await cloudinary_service.delete_image(public_id)
        logger.info(f"Removed orphaned asset after failed save: {public_id}")
    except Exception as e:
        logger.error(
            f"Could not remove orphaned asset {public_id}; left for reconciliation: {str(e)}",
            exc_info=True
        )


async def process_upload_batch(
    files: List[UploadFile],
    catalog: CatalogRepository,
    results: List[UploadResult],
    album_id: Optional[str] = None,
    is_featured: bool = False,
    is_active: bool = True,
) -> List[UploadResult]:
    """
    Process one upload batch, appending one result per file to `results`.

    `results` is filled in place so a caller enforcing a batch deadline still
    sees the outcomes gathered before the deadline.

    Display order for the file at batch index i is `base + i + 1`, where the
    block of order values is reserved atomically on the first accepted file.
    """
    order_base: Optional[int] = None

    for index, file in enumerate(files):
        filename = file.filename or f"file_{index}"
        content = await file.read()
        size = len(content)

        reason = validate_file(file.content_type, size)
        if reason:
            logger.info(f"Skipping {filename}: {reason} (type={file.content_type}, size={size:,})")
            results.append(UploadFailure(filename=filename, error=reason))
            continue

        if order_base is None:
            try:
                order_base = await catalog.reserve_order_block(len(files))
            except Exception as e:
                # Clear the failed transaction so later files can still reserve
                await catalog.db.rollback()
                logger.error(f"Reserving display order failed for {filename}: {str(e)}", exc_info=True)
                results.append(UploadFailure(filename=filename, error=UPLOAD_FAILED))
                continue

        try:
            payload = content
            if settings.CONVERT_UPLOADS_TO_WEBP:
                payload = await asyncio.to_thread(prepare_upload_bytes, content, filename)

            logger.info(f"Uploading image to Cloudinary: {filename}")
            stored = await cloudinary_service.upload_image(payload)
        except Exception as e:
            logger.error(f"Upload error for file {filename}: {str(e)}", exc_info=True)
            results.append(UploadFailure(filename=filename, error=UPLOAD_FAILED))
            continue

        try:
            image = await catalog.create_image(
                title=default_title(filename),
                description=None,
                url=stored["url"],
                cloudinary_id=stored["public_id"],
                width=stored["width"],
                height=stored["height"],
                size=size,
                format=stored.get("format") or file.content_type.split("/", 1)[1],
                is_active=is_active,
                is_featured=is_featured,
                order=order_base + index + 1,
                tags=[],
                album_id=album_id,
            )
        except Exception as e:
            await catalog.db.rollback()
            logger.error(f"Saving image record failed for {filename}: {str(e)}", exc_info=True)
            await _discard_asset(stored["public_id"])
            results.append(UploadFailure(filename=filename, error=UPLOAD_FAILED))
            continue

        logger.info(f"Saved image {image.id} ({filename}), order={image.order}")
        results.append(UploadSuccess(image=ImageSummary.model_validate(image)))

    return results


def summarize(results: List[UploadResult], total: int) -> str:
    succeeded = sum(1 for result in results if result.success)
    return f"Uploaded {succeeded} of {total} images"
