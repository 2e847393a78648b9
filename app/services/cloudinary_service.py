"""
Cloudinary service: the asset store holding original image binaries.
Provides upload, deletion and listing with retries and a per-call timeout.
"""
import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from app.config import settings
import logging
import asyncio
import re
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)

# Configure Cloudinary with credentials from settings
cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True  # Always use HTTPS for secure URLs
)


async def _call_with_timeout(func, *args, **kwargs):
    """Run a blocking Cloudinary SDK call in a worker thread, bounded by the storage timeout."""
    return await asyncio.wait_for(
        asyncio.to_thread(func, *args, **kwargs),
        timeout=settings.STORAGE_TIMEOUT_SECONDS,
    )


async def upload_image(
    file: Any,
    folder: Optional[str] = None,
    public_id: Optional[str] = None,
    max_retries: int = 3
) -> Dict[str, Any]:
    """
    Upload image to Cloudinary with automatic optimization and retry logic.

    Args:
        file: File object, file path, or bytes to upload
        folder: Cloudinary folder path (default: CLOUDINARY_UPLOAD_FOLDER)
        public_id: Optional custom public ID for the image
        max_retries: Maximum number of retry attempts for transient failures

    Returns:
        dict: Upload result containing:
            - url: Secure HTTPS URL for the uploaded image
            - public_id: Cloudinary public ID
            - format: Image format (jpg, png, webp, etc.)
            - width: Image width in pixels
            - height: Image height in pixels
            - bytes: File size in bytes

    Raises:
        CloudinaryError: If upload fails after all retries
        asyncio.TimeoutError: If a single attempt exceeds STORAGE_TIMEOUT_SECONDS
    """
    folder = folder or settings.CLOUDINARY_UPLOAD_FOLDER

    for attempt in range(max_retries):
        try:
            result = await _call_with_timeout(
                cloudinary.uploader.upload,
                file,
                folder=folder,
                public_id=public_id,
                resource_type="image",
                transformation=[
                    {"quality": "auto", "fetch_format": "auto"},
                    {"width": 2000, "height": 2000, "crop": "limit"}  # Limit max dimensions, keep aspect ratio
                ]
            )

            logger.info(f"Successfully uploaded image: {result['public_id']}")

            return {
                "url": result["secure_url"],
                "public_id": result["public_id"],
                "format": result.get("format"),
                "width": result.get("width", 0),
                "height": result.get("height", 0),
                "bytes": result.get("bytes", 0)
            }

        except CloudinaryError as e:
            logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{max_retries}): {str(e)}")

            # Retry with exponential backoff for transient failures
            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                continue

            logger.error(f"Cloudinary upload failed after {max_retries} attempts: {str(e)}")
            raise


async def delete_image(public_id: str, max_retries: int = 3) -> Dict[str, Any]:
    """
    Delete image from Cloudinary with retry logic.
    A "not found" result counts as deleted.

    Args:
        public_id: Cloudinary public ID of the image to delete
        max_retries: Maximum number of retry attempts for transient failures

    Returns:
        dict: Deletion result from Cloudinary

    Raises:
        CloudinaryError: If deletion fails after all retries
    """
    for attempt in range(max_retries):
        try:
            result = await _call_with_timeout(
                cloudinary.uploader.destroy,
                public_id,
                invalidate=True,  # Invalidate CDN cache
                resource_type='image'
            )

            if result.get('result') in ('ok', 'not found'):
                logger.info(f"Deleted image from Cloudinary: {public_id} (result: {result.get('result')})")
            else:
                logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
            return result

        except CloudinaryError as e:
            logger.warning(f"Cloudinary delete error (attempt {attempt + 1}/{max_retries}) for {public_id}: {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)
                continue

            logger.error(f"Cloudinary delete failed after {max_retries} attempts for {public_id}: {str(e)}")
            raise


async def list_assets(prefix: Optional[str] = None, page_size: int = 500) -> List[Dict[str, Any]]:
    """
    List all uploaded images under a folder prefix.

    Args:
        prefix: Folder prefix (default: CLOUDINARY_UPLOAD_FOLDER)
        page_size: Results per Admin API page (max 500)

    Returns:
        list[dict]: `public_id` and `created_at` (ISO 8601, as Cloudinary reports it)
        per asset, in the order Cloudinary returns them
    """
    prefix = prefix or settings.CLOUDINARY_UPLOAD_FOLDER
    assets: List[Dict[str, Any]] = []
    next_cursor = None

    while True:
        params = {"type": "upload", "resource_type": "image", "prefix": prefix, "max_results": page_size}
        if next_cursor:
            params["next_cursor"] = next_cursor

        page = await _call_with_timeout(cloudinary.api.resources, **params)
        assets.extend(
            {"public_id": resource["public_id"], "created_at": resource.get("created_at")}
            for resource in page.get("resources", [])
        )

        next_cursor = page.get("next_cursor")
        if not next_cursor:
            break

    logger.info(f"Listed {len(assets)} Cloudinary assets under prefix '{prefix}'")
    return assets


def extract_public_id_from_url(cloudinary_url: str) -> str:
    """
    Extract Cloudinary public_id from URL.

    Cloudinary URLs typically look like:
    https://res.cloudinary.com/{cloud_name}/image/upload/v{version}/{public_id}.{format}
    or
    https://res.cloudinary.com/{cloud_name}/image/upload/{public_id}.{format}

    Returns:
        str: Public ID (e.g., "mr-photography/image" without file extension)

    Raises:
        ValueError: If URL format is invalid
    """
    match = re.search(r'/image/upload(?:/v\d+)?/(.+)$', cloudinary_url)

    if not match:
        raise ValueError(f"Invalid Cloudinary URL format: {cloudinary_url}")

    parts = match.group(1).split('/')
    # Only the last segment carries the file extension
    if '.' in parts[-1]:
        parts[-1] = parts[-1].rsplit('.', 1)[0]
    return '/'.join(parts)


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME not configured")
        return False
    if not settings.CLOUDINARY_API_KEY:
        logger.warning("CLOUDINARY_API_KEY not configured")
        return False
    if not settings.CLOUDINARY_API_SECRET:
        logger.warning("CLOUDINARY_API_SECRET not configured")
        return False

    logger.info("Cloudinary configuration validated successfully")
    return True
