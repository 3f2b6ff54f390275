# campaigns/utils/image_compression.py
"""
Image compression helpers for upload previews.
Previews are kept in the draft storage, so every image is shrunk and
re-encoded as JPEG before it is turned into a data URL.
"""

import base64
import io
import logging
import mimetypes
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..exceptions import CompressionError
from .previews import ImagePreview, Preview

logger = logging.getLogger(__name__)

# (max_width, max_height, quality)
COVER_IMAGE_PRESET = (800, 600, 0.7)
DOCUMENT_PRESET = (600, 800, 0.6)
SUPPORTING_MEDIA_PRESET = (400, 300, 0.6)


def get_content_type(file) -> str:
    """MIME type reported by the upload, guessed from the name if missing"""
    content_type = getattr(file, 'content_type', None)
    if not content_type:
        content_type, _ = mimetypes.guess_type(getattr(file, 'name', '') or '')
    return content_type or 'application/octet-stream'


def is_image(file) -> bool:
    return get_content_type(file).startswith('image/')


def is_video(file) -> bool:
    return get_content_type(file).startswith('video/')


def _rewind(file):
    if hasattr(file, 'seek') and callable(file.seek):
        file.seek(0)


def scaled_size(width: int, height: int, max_width: int, max_height: int):
    """
    Calculate new dimensions while maintaining aspect ratio.
    Landscape images are bounded by max_width, portrait and square ones by
    max_height. Images already inside the bound keep their size.
    """
    if width > height:
        if width > max_width:
            height = height * max_width / width
            width = max_width
    else:
        if height > max_height:
            width = width * max_height / height
            height = max_height
    return max(1, round(width)), max(1, round(height))


def compress_image(file, max_width: int = 800, max_height: int = 600, quality: float = 0.7) -> str:
    """
    Compress an uploaded image and return it as a base64 JPEG data URL.

    Args:
        file: Uploaded file (anything with read/seek)
        max_width: Maximum width in pixels
        max_height: Maximum height in pixels
        quality: JPEG quality between 0 and 1

    Raises:
        CompressionError: if the image cannot be decoded or encoded
    """
    try:
        _rewind(file)
        with Image.open(file) as img:
            img.load()
            size = scaled_size(img.width, img.height, max_width, max_height)
            if img.mode not in ('RGB', 'L'):
                img = img.convert('RGB')
            if size != img.size:
                img = img.resize(size, Image.LANCZOS)

            buffer = io.BytesIO()
            jpeg_quality = min(95, max(1, round(quality * 100)))
            img.save(buffer, format='JPEG', quality=jpeg_quality, optimize=True)
        _rewind(file)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise CompressionError(f"Failed to compress {getattr(file, 'name', 'image')}: {e}") from e

    encoded = base64.b64encode(buffer.getvalue()).decode('ascii')
    return f"data:image/jpeg;base64,{encoded}"


def read_as_data_url(file) -> str:
    """Encode the file's original bytes as a data URL, without resizing"""
    _rewind(file)
    data = file.read()
    _rewind(file)
    encoded = base64.b64encode(data).decode('ascii')
    return f"data:{get_content_type(file)};base64,{encoded}"


def build_image_preview(file, max_width: int, max_height: int, quality: float) -> Optional[Preview]:
    """
    Compressed preview for an image upload.
    Falls back to the raw file when compression fails. Returns None if the
    file cannot be read at all, so the caller treats it as unselected.
    """
    try:
        return ImagePreview(compress_image(file, max_width, max_height, quality))
    except (CompressionError, OSError, ValueError) as e:
        logger.warning(f"Compression failed, using original file: {e}")

    try:
        return ImagePreview(read_as_data_url(file))
    except (OSError, ValueError) as e:
        logger.error(f"Could not read {getattr(file, 'name', 'file')} for preview: {e}")
        return None
