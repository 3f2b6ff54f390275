# campaigns/utils/__init__.py
from .debounce import Debouncer
from .image_compression import (
    COVER_IMAGE_PRESET,
    DOCUMENT_PRESET,
    SUPPORTING_MEDIA_PRESET,
    build_image_preview,
    compress_image,
    is_image,
    is_video,
    read_as_data_url,
)
from .previews import ImagePreview, NonPreviewable, PreviewKind
from .storage import QuotaStorage, StorageUsage

__all__ = [
    'Debouncer',
    'COVER_IMAGE_PRESET',
    'DOCUMENT_PRESET',
    'SUPPORTING_MEDIA_PRESET',
    'build_image_preview',
    'compress_image',
    'is_image',
    'is_video',
    'read_as_data_url',
    'ImagePreview',
    'NonPreviewable',
    'PreviewKind',
    'QuotaStorage',
    'StorageUsage',
]
