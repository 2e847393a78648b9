"""
Moderation handler: partial updates and deletion of catalog images.

Deletion removes the Cloudinary asset before the catalog row, so an
interrupted delete leaves at worst an unreferenced asset (cleaned up by the
reconciliation sweep) rather than a row pointing at nothing.
"""
import logging
from typing import Any, Optional

from app.models import Image
from app.repositories.catalog import CatalogRepository
from app.services import cloudinary_service

logger = logging.getLogger(__name__)


class ImageNotFoundError(LookupError):
    def __init__(self, image_id: str):
        super().__init__(f"Image ID {image_id} does not exist")
        self.image_id = image_id


def storage_id_for(image: Image) -> Optional[str]:
    """The Cloudinary public id backing an image, if one can be determined."""
    if image.cloudinary_id:
        return image.cloudinary_id
    try:
        return cloudinary_service.extract_public_id_from_url(image.url)
    except ValueError:
        return None


async def update_image(catalog: CatalogRepository, image_id: str, fields: dict[str, Any]) -> Image:
    """Apply `fields` unchanged to the image; omitted attributes keep their values."""
    image = await catalog.get_image(image_id)
    if image is None:
        raise ImageNotFoundError(image_id)

    updated = await catalog.update_image(image, fields)
    logger.info(f"Updated image {image_id}: {sorted(fields)}")
    return updated


async def delete_image(catalog: CatalogRepository, image_id: str) -> bool:
    """
    Delete an image row and, best-effort, its asset.

    Returns:
        bool: whether the asset-store deletion succeeded (or was unnecessary)

    Raises:
        ImageNotFoundError: before anything is deleted, if the id is unknown
    """
    image = await catalog.get_image(image_id)
    if image is None:
        raise ImageNotFoundError(image_id)

    asset_deleted = True
    public_id = storage_id_for(image)
    if public_id:
        try:
            await cloudinary_service.delete_image(public_id)
        except Exception as e:
            asset_deleted = False
            logger.error(
                f"Cloudinary deletion failed for image {image_id} (public_id: {public_id}): {str(e)}",
                exc_info=True
            )
    else:
        logger.warning(f"No Cloudinary public id for image {image_id}, skipping asset deletion")

    await catalog.delete_image(image)
    logger.info(f"Deleted image from catalog: ID {image_id}")
    return asset_deleted
