"""
Image conversion utility for re-encoding uploads as WebP.
Reduces file size before uploading to Cloudinary.
"""
import io
import logging
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85  # Balance between quality and file size (0-100)
DEFAULT_WEBP_METHOD = 6    # Compression method (0-6, higher = better compression but slower)
MAX_DIMENSION = 3840       # Longest side before downscaling


def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP format.

    Returns:
        Tuple[bytes, bool]:
            - Converted bytes, or the original bytes when already WebP or not decodable
            - True when conversion happened or was unnecessary, False when it failed
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))

        if image.format == 'WEBP':
            return image_bytes, True

        # WebP keeps alpha, so palette images go to RGBA and other modes to RGB
        if image.mode == 'P':
            image = image.convert('RGBA')
        elif image.mode not in ('RGB', 'RGBA', 'LA'):
            image = image.convert('RGB')

        if max_dimension:
            width, height = image.size
            if width > max_dimension or height > max_dimension:
                image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
                logger.info(f"Downscaled image from {width}x{height} to {image.size[0]}x{image.size[1]}")

        buffer = io.BytesIO()
        image.save(buffer, format='WEBP', quality=quality, method=method, lossless=quality == 100)
        return buffer.getvalue(), True

    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        return image_bytes, False

    except (OSError, ValueError) as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False


def prepare_upload_bytes(content: bytes, filename: str) -> bytes:
    """
    Pick the payload to send to the asset store: the WebP re-encoding when it
    is smaller than the original, otherwise the original bytes.
    """
    converted, ok = convert_to_webp(content)
    if not ok:
        logger.warning(f"WebP conversion failed for {filename}, uploading original format")
        return content
    if len(converted) < len(content):
        logger.info(f"Converted {filename} to WebP: {len(content):,} bytes -> {len(converted):,} bytes")
        return converted
    return content
